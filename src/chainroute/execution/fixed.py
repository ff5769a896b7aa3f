"""Deterministic execution backends."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from chainroute.core.types import PaymentRequest
from chainroute.execution.base import ExecutionBackend


class FixedOutcomeBackend(ExecutionBackend):
    """Backend that reports the same outcome for every attempt."""

    def __init__(self, success: bool = True) -> None:
        self.success = success
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "fixed"

    async def execute(self, payment: PaymentRequest) -> bool:
        self.calls.append(payment.id)
        return self.success


class ScriptedBackend(ExecutionBackend):
    """
    Backend that replays a scripted sequence of outcomes.

    Once the script runs out, ``default`` is reported.
    """

    def __init__(self, outcomes: Iterable[bool], default: bool = False) -> None:
        self._outcomes = deque(outcomes)
        self._default = default
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "scripted"

    async def execute(self, payment: PaymentRequest) -> bool:
        self.calls.append(payment.id)
        if self._outcomes:
            return self._outcomes.popleft()
        return self._default
