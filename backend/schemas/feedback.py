from datetime import datetime

from pydantic import BaseModel, Field, field_validator


# Schema for a new feedback submission
class FeedbackCreate(BaseModel):
    feedback: str
    stars: int = Field(ge=1, le=5)

    @field_validator("feedback")
    @classmethod
    def feedback_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Feedback and star rating are required")
        return value


class FeedbackResponse(BaseModel):
    id: int
    user: int = Field(validation_alias="user_id")
    feedback: str
    stars: int
    createdAt: datetime = Field(validation_alias="created_at")

    class Config:
        from_attributes = True


# Submitter details joined into the admin listing
class FeedbackAuthor(BaseModel):
    id: int
    fullname: str
    email: str

    class Config:
        from_attributes = True


class FeedbackWithUser(BaseModel):
    id: int
    user: FeedbackAuthor
    feedback: str
    stars: int
    createdAt: datetime = Field(validation_alias="created_at")

    class Config:
        from_attributes = True
