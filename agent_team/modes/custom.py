"""Custom coordination.

A user-supplied coordination function receives the agent pool and a fresh
run-scoped TeamContext, and owns every decision from there.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, List

from ..communication import Blackboard, MessageBus, create_team_context
from ..hooks import TeamHooks
from ..protocol import AgentRole, TeamContext, TeamResult

logger = logging.getLogger(__name__)

CoordinationFn = Callable[[List[AgentRole], str, TeamContext], Awaitable[TeamResult]]


async def run_custom(
    agents: List[AgentRole],
    input: str,
    max_rounds: int,
    hooks: TeamHooks,
    coordination_fn: CoordinationFn,
) -> TeamResult:
    """Run ``coordination_fn`` and pass its TeamResult through verbatim.

    No implicit looping happens here; a function that wants several rounds
    manages them itself through the context.
    """
    await hooks.emit("on_round_start", 1)

    context = create_team_context(Blackboard(), MessageBus(), current_round=1, previous_results=[])

    try:
        result = await coordination_fn(agents, input, context)
    except Exception as e:
        logger.error(f"Custom coordination failed: {e}")
        await hooks.emit("on_error", e)
        raise

    await hooks.emit("on_round_end", 1, result.agent_results)
    return result
