# backend/models/feedback.py
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from database import Base

# A star-rated comment left by a user, at most one per user per local day.
# Never updated or deleted.
class Feedback(Base):
    __tablename__ = "feedback"
    __table_args__ = (CheckConstraint("stars >= 1 AND stars <= 5", name="ck_feedback_stars_range"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    feedback = Column(Text, nullable=False)
    stars = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)

    user = relationship("User", back_populates="feedbacks", lazy="joined")
