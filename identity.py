"""
Identity provider client

Token verification and account creation are delegated to a hosted
Supabase-compatible auth service. This module never sees or stores passwords
beyond forwarding the signup request.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """The identity provider rejected a call or could not be reached."""


class IdentityProvider:
    def __init__(self, base_url: Optional[str], service_key: Optional[str], timeout: float = 10):
        self.base_url = (base_url or "").rstrip("/")
        self.service_key = service_key
        self.timeout = timeout

    def _headers(self, token: str):
        return {
            "Content-Type": "application/json",
            "apikey": self.service_key or "",
            "Authorization": f"Bearer {token}",
        }

    @staticmethod
    def _error_message(resp) -> str:
        try:
            data = resp.json()
        except ValueError:
            return resp.text or f"HTTP {resp.status_code}"
        if not isinstance(data, dict):
            return f"HTTP {resp.status_code}"
        for field in ("msg", "message", "error_description", "error"):
            if data.get(field):
                return str(data[field])
        return f"HTTP {resp.status_code}"

    def verify_token(self, token: str) -> str:
        """Return the user id the bearer token belongs to."""
        if not self.base_url or not token:
            raise IdentityError("Identity provider not configured or token missing")
        try:
            resp = requests.get(f"{self.base_url}/auth/v1/user",
                                headers=self._headers(token), timeout=self.timeout)
        except requests.RequestException as e:
            raise IdentityError(f"Identity provider unreachable: {e}") from e
        if resp.status_code >= 300:
            raise IdentityError(self._error_message(resp))
        try:
            data = resp.json()
        except ValueError as e:
            raise IdentityError("Identity provider returned a non-JSON user") from e
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise IdentityError("Identity provider returned no user id")
        return user_id

    def create_user(self, email: str, password: str, metadata: Optional[dict] = None) -> dict:
        if not self.base_url or not self.service_key:
            raise IdentityError("Identity provider not configured")
        payload = {
            "email": email,
            "password": password,
            "user_metadata": metadata or {},
            # no mail server is configured, so accounts are confirmed on creation
            "email_confirm": True,
        }
        try:
            resp = requests.post(f"{self.base_url}/auth/v1/admin/users",
                                 headers=self._headers(self.service_key), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise IdentityError(f"Identity provider unreachable: {e}") from e
        if resp.status_code >= 300:
            raise IdentityError(self._error_message(resp))
        try:
            return resp.json()
        except ValueError as e:
            raise IdentityError("Identity provider returned a non-JSON user") from e
