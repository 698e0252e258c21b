"""
Security and authentication helpers
"""

import asyncio
import hashlib
import secrets
import threading
from typing import Optional, Sequence

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from fastapi import HTTPException, Request, status

from scribeai.config import settings
from scribeai.core.logging import get_logger
from scribeai.exceptions import AuthError

logger = get_logger(__name__)


class GoogleTokenProvider:
    """
    Supplies OAuth bearer tokens for the Google REST APIs using
    application default credentials.
    """

    def __init__(self, scopes: Optional[Sequence[str]] = None):
        self.scopes = list(scopes or settings.google_scopes)
        self._credentials = None
        self._lock = threading.Lock()

    def _refresh_token(self) -> str:
        with self._lock:
            if self._credentials is None:
                self._credentials, _ = google.auth.default(scopes=self.scopes)
            if not self._credentials.valid:
                self._credentials.refresh(GoogleAuthRequest())
            return self._credentials.token

    async def get_access_token(self) -> str:
        """Returns a valid access token, refreshing it if needed."""
        try:
            token = await asyncio.to_thread(self._refresh_token)
        except GoogleAuthError as e:
            logger.error(f"Error obtaining OAuth token: {e}")
            raise AuthError(
                "Failed to authenticate with Google Cloud. Please check your OAuth scopes and permissions.",
                cause=e,
            ) from e
        if not token:
            raise AuthError("Could not obtain OAuth token")
        return token


class SecurityManager:
    """API key checks and request ids"""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key

    def hash_api_key(self, api_key: str) -> str:
        """Short hash of an API key, safe to put in audit logs"""
        return hashlib.sha256(api_key.encode()).hexdigest()[:16]

    def generate_request_id(self) -> str:
        """Random URL-safe request id"""
        return secrets.token_urlsafe(16)

    def validate_api_key(self, api_key: Optional[str]) -> bool:
        """Checks a key against the configured one. Always true when none is configured."""
        if not self.api_key:
            return True
        return bool(api_key) and secrets.compare_digest(api_key, self.api_key)


# Global security manager instance
security_manager = SecurityManager(settings.api_key)


async def require_api_key(request: Request) -> None:
    """
    Dependency for the /v1 routes. Only enforced when an API key is configured.
    """
    api_key = request.headers.get("X-API-Key")
    if security_manager.validate_api_key(api_key):
        if api_key:
            logger.info(f"Authenticated via API Key with hash: {security_manager.hash_api_key(api_key)}")
        return

    logger.warning("Authentication failed: No valid API key provided.")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing authentication credentials",
    )
