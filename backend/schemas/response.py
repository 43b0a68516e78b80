from typing import Any, List

from pydantic import BaseModel


# Envelope wrapped around every successful payload
class ApiResponse(BaseModel):
    statusCode: int
    data: Any = None
    message: str = "Success"
    success: bool = True

    @classmethod
    def of(cls, status_code: int, data: Any = None, message: str = "Success") -> "ApiResponse":
        return cls(statusCode=status_code, data=data, message=message, success=status_code < 400)


# Envelope for failures, produced by the exception handlers
class ApiErrorResponse(BaseModel):
    statusCode: int
    data: None = None
    message: str
    success: bool = False
    errors: List[Any] = []
