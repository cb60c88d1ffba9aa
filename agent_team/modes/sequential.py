"""Sequential (pipeline) coordination.

Agents run once each in configured order; every agent after the first
receives the previous agent's response text as its input.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..hooks import TeamHooks
from ..protocol import AgentResponse, AgentRole, Signal, TeamResult
from ..utils import aggregate_usage, is_aborted, run_agent

logger = logging.getLogger(__name__)

DONE_MARKER = "[DONE]"


async def run_sequential(
    agents: List[AgentRole],
    input: str,
    max_rounds: int,
    hooks: TeamHooks,
    signal: Optional[Signal] = None,
) -> TeamResult:
    """Run agents as a pipeline: A -> B -> C.

    An agent whose text contains ``[DONE]`` ends the pipeline early.
    Agent errors are reported through ``on_error`` and then propagate.
    """
    agent_results: List[AgentResponse] = []
    current_input = input

    await hooks.emit("on_round_start", 1)

    for member in agents:
        if is_aborted(signal):
            logger.info(f"Pipeline aborted before agent '{member.name}'")
            break

        agent = member.agent
        await hooks.emit("on_agent_start", agent.name, 1)

        try:
            response = await run_agent(agent, current_input, signal)
        except Exception as e:
            logger.error(f"Pipeline agent '{agent.name}' failed: {e}")
            await hooks.emit("on_error", e)
            raise

        agent_results.append(response)
        await hooks.emit("on_agent_end", agent.name, response, 1)

        if DONE_MARKER in response.text:
            logger.info(f"Agent '{agent.name}' signalled {DONE_MARKER}, ending pipeline")
            break

        current_input = response.text

    await hooks.emit("on_round_end", 1, agent_results)

    return TeamResult(
        final_output=agent_results[-1].text if agent_results else "",
        agent_results=agent_results,
        rounds=1,
        total_usage=aggregate_usage(agent_results),
    )
