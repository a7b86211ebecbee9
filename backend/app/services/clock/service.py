"""
Server Clock - Verified "today" for date integrity checks

Habit logs and rewards are keyed by calendar date, so the date must come from
a clock clients cannot move. The verified date is fetched from public time
servers, cached briefly, and falls back to the server's own IST clock when
every source is down.
"""
from datetime import date
import logging
import threading
import time
from typing import Any, Dict, Optional

from app.core.config import settings
from app.services.external import time_api
from app.utils.timezone import get_ist_today_date

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_VERIFIED = "verified"
STATUS_FAILED = "failed"


class ServerClock:
    """Cached, source-verified IST date"""

    def __init__(self, cache_seconds: int = settings.TIME_VERIFICATION_CACHE_SECONDS,
                 timeout_seconds: float = settings.TIME_API_TIMEOUT_SECONDS,
                 retry_seconds: int = settings.TIME_API_RETRY_SECONDS):
        self.cache_seconds = cache_seconds
        self.timeout_seconds = timeout_seconds
        self.retry_seconds = retry_seconds
        self._lock = threading.Lock()
        self.verified_date: Optional[str] = None
        self.verified_timestamp_ms: Optional[int] = None
        self.source: Optional[str] = None
        self.last_verification: float = 0.0
        self.status: str = STATUS_PENDING

    def _cache_valid(self) -> bool:
        if self.verified_date is None:
            return False
        age = time.monotonic() - self.last_verification
        if self.status == STATUS_VERIFIED:
            return age < self.cache_seconds
        # A failed lookup is reused until the retry window passes
        if self.status == STATUS_FAILED:
            return age < self.retry_seconds
        return False

    def get_verified_date(self) -> str:
        """
        Get today's IST date, verified against time servers when possible

        Returns:
            Date string in YYYY-MM-DD format
        """
        with self._lock:
            if self._cache_valid():
                return self.verified_date

            result = time_api.fetch_first_available(self.timeout_seconds)
            if result:
                self.verified_date = result["date"]
                self.verified_timestamp_ms = result["timestamp_ms"]
                self.source = result["source"]
                self.last_verification = time.monotonic()
                self.status = STATUS_VERIFIED
                logger.info(f"[DATE VERIFY] Server date verified via {self.source}: {self.verified_date}")
                return self.verified_date

            logger.warning("[DATE VERIFY] All time APIs failed, using local IST date")
            self.verified_date = get_ist_today_date().isoformat()
            self.verified_timestamp_ms = None
            self.source = "local"
            self.last_verification = time.monotonic()
            self.status = STATUS_FAILED
            return self.verified_date

    def get_verified_today(self) -> date:
        return date.fromisoformat(self.get_verified_date())

    def force_verify(self) -> str:
        """Drop the cache and verify again"""
        with self._lock:
            self.verified_date = None
            self.last_verification = 0.0
            self.status = STATUS_PENDING
        return self.get_verified_date()

    def get_status(self) -> Dict[str, Any]:
        cache_age = time.monotonic() - self.last_verification if self.last_verification else 0.0
        return {
            "status": self.status,
            "server_date": self.verified_date,
            "server_timestamp_ms": self.verified_timestamp_ms,
            "source": self.source,
            "cache_age_seconds": round(cache_age, 3)
        }

    def verify_client_clock(self, client_date: str,
                            client_timestamp_ms: Optional[int] = None) -> Dict[str, Any]:
        """
        Compare a client's reported date/time with the verified server clock

        Args:
            client_date: Client's local date (YYYY-MM-DD)
            client_timestamp_ms: Client's epoch milliseconds, if known

        Returns:
            Dict with is_valid, client_date, server_date, mismatch, status,
            time_drift_ms and manipulated
        """
        server_date = self.get_verified_date()
        mismatch = client_date != server_date

        time_drift_ms = 0
        if client_timestamp_ms is not None and self.verified_timestamp_ms is not None:
            # Advance the cached server timestamp by the cache age
            elapsed_ms = int((time.monotonic() - self.last_verification) * 1000)
            time_drift_ms = abs(client_timestamp_ms - (self.verified_timestamp_ms + elapsed_ms))

        if mismatch:
            logger.warning(f"[DATE VERIFY] Date mismatch detected. Client: {client_date}, Server: {server_date}")

        return {
            "is_valid": not mismatch and self.status == STATUS_VERIFIED,
            "client_date": client_date,
            "server_date": server_date,
            "mismatch": mismatch,
            "status": self.status,
            "time_drift_ms": time_drift_ms,
            "manipulated": mismatch or time_drift_ms > settings.MAX_CLOCK_DRIFT_SECONDS * 1000
        }


server_clock = ServerClock()


def get_verified_today() -> date:
    """Get the verified IST date from the shared clock"""
    return server_clock.get_verified_today()
