"""
Pydantic models for client clock verification
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class ClockCheckRequest(BaseModel):
    """Client-reported local date and time"""
    client_date: str = Field(..., description="Client's local date in YYYY-MM-DD")
    client_timestamp_ms: Optional[int] = Field(None, ge=0, description="Client epoch milliseconds")

    @field_validator("client_date")
    @classmethod
    def validate_client_date(cls, v: str) -> str:
        try:
            date.fromisoformat(v)
            return v
        except ValueError:
            raise ValueError(f"Invalid date format '{v}'. Use YYYY-MM-DD")
