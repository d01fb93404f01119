"""Actions: effectful steps run after a guard passes, before the state moves.

An action reports failure by returning ``ActionResult(ok=False)``, ``False``
or an ``ActionFailed``, or by raising. Either way the trigger is aborted
and the state stays put. The engine never retries an action.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum

from .errors import ActionFailed
from .guards import Context

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActionResult:
    ok: bool
    message: str = ""
    details: dict[str, object] | None = None

    @classmethod
    def success(cls, message: str = "", **details: object) -> ActionResult:
        return cls(ok=True, message=message, details=details or None)

    @classmethod
    def failure(cls, message: str, **details: object) -> ActionResult:
        return cls(ok=False, message=message, details=details or None)


Action = Callable[[Context], ActionResult | ActionFailed | bool | None]


def action_name(action: Action) -> str:
    return getattr(action, "__name__", type(action).__name__)


def run_action(action: Action | None, context: Context, *, state: Enum, event: Enum) -> None:
    """Run ``action`` and translate any failure into :class:`ActionFailed`.

    Accepted return values are ``None``, ``True``, an :class:`ActionResult`
    or a returned :class:`ActionFailed`. ``False``, a failed result or any
    other value aborts the trigger.
    """

    if action is None:
        return
    name = action_name(action)
    try:
        result = action(context)
    except ActionFailed:
        raise
    except Exception as e:
        logger.warning(
            "Action raised",
            extra={"action": name, "state": state.name, "event": event.name},
            exc_info=True,
        )
        raise ActionFailed(state, event, str(e) or type(e).__name__) from e

    if result is None or result is True:
        return
    if isinstance(result, ActionFailed):
        raise result
    if isinstance(result, ActionResult):
        if result.ok:
            return
        reason = result.message or "action reported failure"
    elif result is False:
        reason = "action reported failure"
    else:
        reason = f"unexpected return value {type(result).__name__}"

    logger.warning(
        "Action reported failure",
        extra={"action": name, "state": state.name, "event": event.name, "reason": reason},
    )
    raise ActionFailed(state, event, reason)


def with_timeout(action: Action, seconds: float) -> Action:
    """Wrap ``action`` with a deadline.

    The action runs on a worker thread; if it has not finished after
    ``seconds`` the trigger fails with :class:`ActionFailed`. The worker is
    not interrupted, so actions should be safe to abandon.
    """

    if seconds <= 0:
        raise ValueError("seconds must be positive")

    def timed(context: Context) -> ActionResult | None:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="workflow-action")
        try:
            future = executor.submit(action, context)
            try:
                return future.result(timeout=seconds)
            except FutureTimeout as e:
                raise TimeoutError(
                    f"{action_name(action)} did not finish within {seconds:g}s"
                ) from e
        finally:
            executor.shutdown(wait=False)

    timed.__name__ = action_name(action)
    timed.__qualname__ = timed.__name__
    return timed
