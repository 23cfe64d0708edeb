"""
Error envelope returned by every failing request.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    timestamp: datetime
    status: int
    error: str
    message: str
    path: str
    details: Optional[dict[str, str]] = None
