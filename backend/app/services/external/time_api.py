"""
Time API Service - Trusted wall-clock time from public time servers
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging

import requests

from app.core.exceptions import ExternalServiceError
from app.utils.timezone import IST_TZ

logger = logging.getLogger(__name__)


def _timeapi_io_date(data: Dict[str, Any]) -> str:
    return f"{data['year']:04d}-{data['month']:02d}-{data['day']:02d}"


def _timeapi_io_timestamp(data: Dict[str, Any]) -> int:
    # dateTime is local IST wall time without an offset
    value = datetime.fromisoformat(data["dateTime"][:26])
    return int(IST_TZ.localize(value).timestamp() * 1000)


def _worldtimeapi_date(data: Dict[str, Any]) -> str:
    return data["datetime"].split("T")[0]


def _worldtimeapi_timestamp(data: Dict[str, Any]) -> int:
    return int(data["unixtime"]) * 1000


TIME_APIS: List[Dict[str, Any]] = [
    {
        "name": "TimeAPI.io",
        "url": "https://timeapi.io/api/Time/current/zone?timeZone=Asia/Kolkata",
        "parse_date": _timeapi_io_date,
        "parse_timestamp": _timeapi_io_timestamp
    },
    {
        "name": "WorldTimeAPI",
        "url": "https://worldtimeapi.org/api/timezone/Asia/Kolkata",
        "parse_date": _worldtimeapi_date,
        "parse_timestamp": _worldtimeapi_timestamp
    }
]


def fetch_time(api: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    """
    Fetch the current IST date and epoch milliseconds from one time API

    Args:
        api: Entry from TIME_APIS
        timeout: Request timeout in seconds

    Returns:
        Dict with source, date (YYYY-MM-DD) and timestamp_ms

    Raises:
        ExternalServiceError: If the request or parsing fails
    """
    parse_date: Callable[[Dict[str, Any]], str] = api["parse_date"]
    parse_timestamp: Callable[[Dict[str, Any]], int] = api["parse_timestamp"]

    try:
        response = requests.get(api["url"], timeout=timeout, headers={"Cache-Control": "no-store"})
        response.raise_for_status()
        data = response.json()
        return {
            "source": api["name"],
            "date": parse_date(data),
            "timestamp_ms": parse_timestamp(data)
        }
    except (requests.RequestException, ValueError, KeyError) as e:
        logger.warning(f"[DATE VERIFY] {api['name']} failed: {e}")
        raise ExternalServiceError(f"{api['name']} failed: {e}")


def fetch_first_available(timeout: float, apis: Optional[List[Dict[str, Any]]] = None) -> Optional[Dict[str, Any]]:
    """
    Query every time API in parallel and return the first success in list order

    Returns:
        Result dict from fetch_time, or None if every source failed
    """
    apis = apis if apis is not None else TIME_APIS
    if not apis:
        return None

    executor = ThreadPoolExecutor(max_workers=len(apis))
    try:
        futures = [executor.submit(fetch_time, api, timeout) for api in apis]
        for future in futures:
            try:
                return future.result()
            except ExternalServiceError:
                continue
    finally:
        # Slower sources are left to finish on their own
        executor.shutdown(wait=False, cancel_futures=True)

    return None
