"""Authorization gate for mutating operations."""

from __future__ import annotations

import hmac
import logging
from typing import Any, Optional, Protocol

from .exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class AccessGuard(Protocol):
    def authorize(self, credential: Any) -> bool:
        ...


class PasswordGuard:
    """
    Accepts a credential equal to the configured access secret.

    An empty secret is a misconfiguration and denies everything.
    """

    def __init__(self, secret: Optional[str]) -> None:
        self._secret = secret or ""

    def authorize(self, credential: Any) -> bool:
        if not self._secret:
            logger.error("Access secret is not set; rejecting write")
            return False
        if not isinstance(credential, str) or not credential:
            return False
        return hmac.compare_digest(credential.encode("utf-8"), self._secret.encode("utf-8"))


def require(guard: AccessGuard, credential: Any) -> None:
    """Raise UnauthorizedError unless `guard` accepts `credential`."""
    if not guard.authorize(credential):
        raise UnauthorizedError("Unauthorized")
