"""Guards: read-only predicates that gate a matched transition.

A guard receives the caller's context and answers yes or no. A guard that
raises is treated as having answered no, so a malformed context can never
let a transition through.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

Context = Mapping[str, Any]
Guard = Callable[[Context], bool]


def guard_name(guard: Guard) -> str:
    return getattr(guard, "__name__", type(guard).__name__)


def evaluate_guard(guard: Guard | None, context: Context) -> bool:
    """Return whether ``guard`` permits the transition for ``context``."""

    if guard is None:
        return True
    try:
        return bool(guard(context))
    except Exception:
        logger.warning(
            "Guard raised; treating as rejection",
            extra={"guard": guard_name(guard)},
            exc_info=True,
        )
        return False


def _named(fn: Guard, name: str) -> Guard:
    fn.__name__ = name
    fn.__qualname__ = name
    return fn


def all_of(*guards: Guard) -> Guard:
    def guard(context: Context) -> bool:
        return all(evaluate_guard(g, context) for g in guards)

    return _named(guard, "all_of(" + ", ".join(guard_name(g) for g in guards) + ")")


def any_of(*guards: Guard) -> Guard:
    def guard(context: Context) -> bool:
        return any(evaluate_guard(g, context) for g in guards)

    return _named(guard, "any_of(" + ", ".join(guard_name(g) for g in guards) + ")")


def negate(inner: Guard) -> Guard:
    def guard(context: Context) -> bool:
        return not evaluate_guard(inner, context)

    return _named(guard, f"not({guard_name(inner)})")


def requires_keys(*keys: str) -> Guard:
    """Pass only when every key is present and not ``None``."""

    def guard(context: Context) -> bool:
        return all(context.get(key) is not None for key in keys)

    return _named(guard, "requires_keys(" + ", ".join(keys) + ")")


def context_equals(left_key: str, right_key: str) -> Guard:
    """Pass when two context values are present and equal.

    Missing keys reject rather than compare ``None == None``.
    """

    def guard(context: Context) -> bool:
        left = context[left_key]
        right = context[right_key]
        if left is None or right is None:
            return False
        return bool(left == right)

    return _named(guard, f"{left_key} == {right_key}")


def context_in(key: str, allowed: Iterable[object]) -> Guard:
    choices = frozenset(allowed)

    def guard(context: Context) -> bool:
        return context[key] in choices

    return _named(guard, f"{key} in {sorted(map(str, choices))}")
