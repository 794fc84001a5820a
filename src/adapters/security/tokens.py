"""
JWT session token adapter - Implements SessionTokenIssuer protocol.

Tokens carry the account email as ``sub`` plus ``iat``/``exp`` claims and
are signed with the server-held secret.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import jwt

logger = logging.getLogger(__name__)


class JwtSessionTokenIssuer:
    """Implements SessionTokenIssuer protocol via PyJWT."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def issue(self, email: str) -> str:
        issued_at = self._clock()
        payload = {"sub": email, "iat": issued_at, "exp": issued_at + self._ttl}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> str | None:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired session token")
            return None
        except jwt.InvalidTokenError:
            logger.info("Rejected invalid session token")
            return None
        subject = payload.get("sub")
        return subject if isinstance(subject, str) else None
