"""
CallerAllowList - Authorization for mutating operations.

Anonymous callers (``None``) are always permitted; a named caller must be on
the list.
"""

from __future__ import annotations

from collections.abc import Iterable

from chainroute.core.exceptions import UnauthorizedError
from chainroute.core.logging import get_logger


class CallerAllowList:
    """In-memory allow-list of caller identities."""

    def __init__(self, callers: Iterable[str] = ()) -> None:
        self._callers: list[str] = []
        self._logger = get_logger("auth")
        for caller in callers:
            self.add(caller)

    def is_authorized(self, caller: str | None) -> bool:
        return caller is None or caller in self._callers

    def require(self, caller: str | None) -> None:
        """
        Raises:
            UnauthorizedError: If the caller is named and not on the list
        """
        if not self.is_authorized(caller):
            self._logger.warning(f"Rejected unauthorized caller: {caller}")
            raise UnauthorizedError("Unauthorized", caller=caller)

    def add(self, caller: str) -> None:
        if caller not in self._callers:
            self._callers.append(caller)
            self._logger.info(f"Authorized caller: {caller}")

    def remove(self, caller: str) -> None:
        if caller in self._callers:
            self._callers.remove(caller)
            self._logger.info(f"Deauthorized caller: {caller}")

    def list(self) -> list[str]:
        return list(self._callers)
