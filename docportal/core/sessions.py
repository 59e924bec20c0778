"""
core/sessions.py
----------------
Process-scoped session store.

Maps an opaque token to identity claims with a server-side expiry equal to
the cookie lifetime. State lives in this process only: with several worker
processes a session is valid only on the worker that created it.
"""

import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from docportal.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SessionRecord:
    claims: Dict[str, Any]
    expires_at: float


class SessionStore:

    def __init__(
        self,
        ttl_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._records: Dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def create(self, claims: Dict[str, Any]) -> str:
        self.purge_expired()
        token = secrets.token_urlsafe(32)
        self._records[token] = SessionRecord(
            claims=dict(claims), expires_at=self._clock() + self._ttl
        )
        return token

    def resolve(self, token: str) -> Optional[Dict[str, Any]]:
        record = self._records.get(token)
        if record is None:
            return None
        if self._clock() >= record.expires_at:
            del self._records[token]
            return None
        return dict(record.claims)

    def destroy(self, token: str) -> None:
        self._records.pop(token, None)

    def destroy_for_company(self, company_id: int) -> int:
        """Drop every session bound to a company. Returns how many were dropped."""
        doomed = [
            token
            for token, record in self._records.items()
            if record.claims.get("companyId") == company_id
        ]
        for token in doomed:
            del self._records[token]
        if doomed:
            logger.info("Sessions revoked", company_id=company_id, count=len(doomed))
        return len(doomed)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [t for t, r in self._records.items() if now >= r.expires_at]
        for token in expired:
            del self._records[token]
        return len(expired)
