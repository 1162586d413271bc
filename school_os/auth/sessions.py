"""
Signed cookie sessions.

The cookie carries only the user id and username, signed with the session
secret. It never authenticates a request on its own: the authentication
dependency converts it into a short-lived bearer token first.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

logger = logging.getLogger("school_os.auth")

SESSION_ALGORITHM = "HS256"


class SessionSigner:
    def __init__(self, secret_key: str, max_age_seconds: int) -> None:
        self._secret_key = secret_key
        self.max_age_seconds = max_age_seconds

    def dump(self, *, user_id: int, username: str) -> str:
        expire = datetime.now(timezone.utc) + timedelta(seconds=self.max_age_seconds)
        payload = {"user_id": user_id, "username": username, "typ": "session", "exp": expire}
        return jwt.encode(payload, self._secret_key, algorithm=SESSION_ALGORITHM)

    def load(self, value: str) -> Optional[Dict[str, Any]]:
        """Return the session payload, or None if the cookie is forged, stale or not a session."""
        try:
            payload = jwt.decode(value, self._secret_key, algorithms=[SESSION_ALGORITHM])
        except JWTError as e:
            logger.debug("Ignoring unreadable session cookie: %s", e.__class__.__name__)
            return None
        if payload.get("typ") != "session" or not isinstance(payload.get("user_id"), int):
            return None
        return payload
