"""
Dependency injection for shared clients and resources
"""
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import create_client, Client

from app.core.config import settings

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class SupabaseClient:
    """Lazily created Supabase clients shared across the process"""
    _client: Optional[Client] = None
    _service_client: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with the service_role key; bypasses RLS."""
        if cls._service_client is None and settings.SUPABASE_SERVICE_ROLE_KEY:
            cls._service_client = create_client(
                settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase_client() -> Client:
    """
    Get the Supabase client used by repositories

    Access is scoped by user_id in every query, so the service role client is
    preferred when configured.
    """
    return SupabaseClient.get_service_client()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> Dict[str, Any]:
    """
    Resolve the bearer token to a Supabase Auth user

    Returns:
        Dict with the user's id and email

    Raises:
        HTTPException: 401 when the token is missing or rejected
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        response = get_supabase_client().auth.get_user(credentials.credentials)
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = getattr(response, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    return {"id": user.id, "email": getattr(user, "email", None)}
