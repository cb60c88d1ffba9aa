"""Lifecycle hooks for observing team execution."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, fields
from typing import Any, Callable, Optional

HookFn = Callable[..., Any]


@dataclass
class TeamHooks:
    """Optional callbacks fired while a team runs.

    Every hook may be a plain function or a coroutine function.

    Attributes:
        on_round_start: ``(round)``
        on_agent_start: ``(agent_name, round)``
        on_agent_end: ``(agent_name, response, round)``
        on_round_end: ``(round, results)``
        on_consensus: ``(round, output)``, debate mode only
        on_error: ``(error)``
    """

    on_round_start: Optional[HookFn] = None
    on_agent_start: Optional[HookFn] = None
    on_agent_end: Optional[HookFn] = None
    on_round_end: Optional[HookFn] = None
    on_consensus: Optional[HookFn] = None
    on_error: Optional[HookFn] = None

    async def emit(self, hook: str, *args: Any) -> None:
        """Invoke ``hook`` if set, awaiting it when it returns an awaitable."""
        fn = getattr(self, hook)
        if fn is None:
            return
        result = fn(*args)
        if inspect.isawaitable(result):
            await result

    def replace(self, **overrides: Optional[HookFn]) -> TeamHooks:
        """Return a copy with some hooks swapped out."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(overrides)
        return TeamHooks(**values)
