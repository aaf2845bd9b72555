"""Outbound signal that a workspace's reconciliation state changed.

Dependent views (cached lists, dashboards) subscribe here to refresh after
matches are created.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from uuid import UUID

from recon.logger import get_logger, log_exception

logger = get_logger(__name__)

ReconciliationListener = Callable[[UUID], Awaitable[None] | None]

_listeners: list[ReconciliationListener] = []


def subscribe(listener: ReconciliationListener) -> None:
    if listener not in _listeners:
        _listeners.append(listener)


def unsubscribe(listener: ReconciliationListener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def clear_listeners() -> None:
    """Drop all listeners (primarily for tests)."""
    _listeners.clear()


async def notify_reconciliation_changed(workspace_id: UUID) -> int:
    """Invoke every listener; returns how many completed without error.

    Runs after the triggering write has committed, so a failing listener is
    logged and skipped rather than surfaced to the caller.
    """
    delivered = 0
    for listener in list(_listeners):
        try:
            outcome = listener(workspace_id)
            if inspect.isawaitable(outcome):
                await outcome
            delivered += 1
        except Exception as exc:
            log_exception(
                logger,
                exc,
                "Reconciliation change listener failed",
                level="warning",
                workspace_id=str(workspace_id),
                listener=getattr(listener, "__name__", repr(listener)),
            )
    return delivered
