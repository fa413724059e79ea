"""API response envelope shared by every marketplace endpoint.

{
    "code": 0,             // 0=success, otherwise an AppError code
    "message": "success",
    "data": { ... },       // null on error
    "block_time": 1647032340000000000,   // instant the engine saw, ns
    "request_id": "req_..."
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    block_time: int | None = None
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: Any = None, block_time: int | None = None) -> ApiResponse:
    return ApiResponse(code=0, message="success", data=data, block_time=block_time)


def error_response(code: int, message: str) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=None)
