from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from school_os.core.exceptions import InvalidToken, TokenExpired


def hash_password(plain_password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # In case the stored hash is invalid/corrupted
        return False


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: Optional[str]
    role: Optional[str]
    expires_at: datetime


class TokenService:
    """Issue and verify signed bearer tokens. Holds only the process-wide secret; no state."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 24 * 60) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def issue(
        self,
        *,
        user_id: int,
        username: Optional[str],
        role: Optional[str] = None,
        expires_minutes: Optional[int] = None,
    ) -> str:
        if expires_minutes is None:
            expires_minutes = self._expire_minutes
        expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
        to_encode: Dict[str, Any] = {
            "sub": str(user_id),
            "user_id": user_id,
            "username": username,
            "role": role,
            "exp": expire,
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpired() from e
        except JWTError as e:
            raise InvalidToken(detail=str(e)) from e

        user_id = payload.get("user_id")
        exp = payload.get("exp")
        if not isinstance(user_id, int) or isinstance(user_id, bool) or exp is None:
            raise InvalidToken(detail="Token is missing required claims")

        return TokenClaims(
            user_id=user_id,
            username=payload.get("username"),
            role=payload.get("role"),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
