"""
Time Routes - Server-verified date for clients
"""
from fastapi import APIRouter

from app.models.clock import ClockCheckRequest
from app.services.clock import server_clock

router = APIRouter(prefix="/time", tags=["time"])


@router.get("/today")
async def get_today():
    """Today's verified IST date and how it was verified"""
    date = server_clock.get_verified_date()
    return {"date": date, **server_clock.get_status()}


@router.post("/verify")
async def verify_clock(payload: ClockCheckRequest):
    """Check a client's date and clock against the server"""
    return server_clock.verify_client_clock(payload.client_date, payload.client_timestamp_ms)
