# provider_gateway/auth/tokens.py
"""
Dashboard access tokens
-------------------------------------------
HS256 JWTs bound to one Booksy business id, plus opaque refresh tokens kept
in a RefreshTokenStore.
"""
from __future__ import annotations

import base64
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt

from provider_gateway.auth.store import InMemoryRefreshTokenStore, RefreshTokenStore
from provider_gateway.config import AppSettings

ALGORITHM = "HS256"
SUBJECT = "Booksy"
BUSINESS_ID_CLAIM = "businessId"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    def __init__(
        self,
        settings: AppSettings,
        store: Optional[RefreshTokenStore] = None,
        *,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings
        self.store = store or InMemoryRefreshTokenStore(
            ttl_seconds=timedelta(days=settings.refresh_token_validity_in_days).total_seconds()
        )
        self._now = now

    # ---- access tokens -------------------------------------------------------
    def create_token(self, business_id: int) -> str:
        claims = {
            "sub": SUBJECT,
            "jti": str(uuid.uuid4()),
            BUSINESS_ID_CLAIM: str(business_id),
            "iss": self.settings.issuer,
            "aud": self.settings.audience,
            "exp": self._now() + timedelta(days=self.settings.access_token_validity_in_days),
        }
        return jwt.encode(claims, self.settings.secret, algorithm=ALGORITHM)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """Fully validated decode (signature, expiry, issuer, audience); raises JWTError."""
        return jwt.decode(
            token,
            self.settings.secret,
            algorithms=[ALGORITHM],
            audience=self.settings.audience,
            issuer=self.settings.issuer,
        )

    def get_principal_from_expired_token(self, token: str) -> Dict[str, Any]:
        """Signature-checked claims of a possibly expired token."""
        header = jwt.get_unverified_header(token)
        if str(header.get("alg", "")).upper() != ALGORITHM:
            raise JWTError("Invalid token")
        return jwt.decode(
            token,
            self.settings.secret,
            algorithms=[ALGORITHM],
            options={"verify_exp": False, "verify_aud": False, "verify_iss": False},
        )

    @staticmethod
    def business_id_from(claims: Dict[str, Any]) -> int:
        raw = claims.get(BUSINESS_ID_CLAIM)
        if raw is None:
            raise JWTError("Business ID claim is missing")
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise JWTError("Invalid business ID format")

    # ---- refresh tokens ------------------------------------------------------
    @staticmethod
    def generate_refresh_token() -> str:
        return base64.b64encode(secrets.token_bytes(64)).decode("ascii")

    def issue_refresh_token(self, business_id: int) -> str:
        token = self.generate_refresh_token()
        self.store.add(token, business_id)
        return token

    def is_authorized(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return self.store.contains(token)

    def remove_token(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return self.store.remove(token)
