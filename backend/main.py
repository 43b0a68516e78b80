# backend/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from config import settings, validate_runtime_config
from database import init_db
from utils.errors import register_exception_handlers

# Router imports
from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.stats import router as stats_router
from routes.logs import router as logs_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialization
validate_runtime_config()
init_db()

app = FastAPI(title="Feedback Portal API", version="1.0.0")

# CORS: the frontend sends cookies, so origins must be explicit
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Router registration
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(stats_router)
app.include_router(logs_router)

@app.get("/")
def read_root():
    return {"message": "Feedback Portal API is running"}
