"""Parallel coordination.

All agents run concurrently on the same input and the surviving responses
are aggregated. A failed or timed-out agent is excluded from the result
instead of failing the run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from ..aggregation import AggregationStrategy, CustomReducer, aggregate, resolve_strategy
from ..errors import AgentTimeoutError, TeamConfigError
from ..hooks import TeamHooks
from ..protocol import AgentResponse, AgentRole, Signal, TeamResult
from ..utils import aggregate_usage, run_agent

logger = logging.getLogger(__name__)


@dataclass
class AgentOutcome:
    """Outcome of one parallel invocation: a response or an error."""

    agent_name: str
    response: Optional[AgentResponse] = None
    error: Optional[Exception] = None


def _discard_late_result(agent_name: str) -> Callable[["asyncio.Future[AgentResponse]"], None]:
    def _callback(task: "asyncio.Future[AgentResponse]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug(f"Timed-out agent '{agent_name}' later failed: {exc}")
        else:
            logger.debug(f"Timed-out agent '{agent_name}' finished late; result discarded")

    return _callback


async def run_with_timeout(
    member: AgentRole,
    input: str,
    timeout_ms: Optional[float] = None,
    signal: Optional[Signal] = None,
) -> AgentOutcome:
    """Run one agent, converting errors and timeouts into an outcome.

    The timeout only stops the waiting; the agent call itself keeps running
    in the background and its eventual result is dropped.
    """
    name = member.name

    if not timeout_ms:
        try:
            return AgentOutcome(name, response=await run_agent(member.agent, input, signal))
        except Exception as e:
            return AgentOutcome(name, error=e)

    task = asyncio.ensure_future(run_agent(member.agent, input, signal))
    done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    if not done:
        task.add_done_callback(_discard_late_result(name))
        return AgentOutcome(name, error=AgentTimeoutError(name, timeout_ms))

    try:
        return AgentOutcome(name, response=task.result())
    except Exception as e:
        return AgentOutcome(name, error=e)


async def run_parallel(
    agents: List[AgentRole],
    input: str,
    max_rounds: int,
    hooks: TeamHooks,
    aggregation_strategy: Union[str, AggregationStrategy] = AggregationStrategy.MERGE_ALL,
    custom_reducer: Optional[CustomReducer] = None,
    agent_timeout_ms: Optional[float] = None,
    signal: Optional[Signal] = None,
) -> TeamResult:
    """Fan the input out to every agent and aggregate the survivors.

    Always a single round. Successful responses keep configured agent order
    regardless of completion order.
    """
    strategy = resolve_strategy(aggregation_strategy)
    if strategy is AggregationStrategy.CUSTOM and custom_reducer is None:
        raise TeamConfigError(
            'Aggregation strategy "custom" requires a customReducer function.'
        )

    await hooks.emit("on_round_start", 1)
    for member in agents:
        await hooks.emit("on_agent_start", member.name, 1)

    outcomes = await asyncio.gather(
        *(run_with_timeout(member, input, agent_timeout_ms, signal) for member in agents)
    )

    agent_results: List[AgentResponse] = []
    for outcome in outcomes:
        if outcome.response is not None:
            agent_results.append(outcome.response)
            await hooks.emit("on_agent_end", outcome.agent_name, outcome.response, 1)
        elif outcome.error is not None:
            logger.warning(f"Parallel agent '{outcome.agent_name}' excluded: {outcome.error}")
            await hooks.emit("on_error", outcome.error)

    await hooks.emit("on_round_end", 1, agent_results)

    logger.info(
        f"Parallel round finished: {len(agent_results)}/{len(agents)} agents succeeded, "
        f"aggregating with '{strategy.value}'"
    )

    return TeamResult(
        final_output=aggregate(strategy, agent_results, custom_reducer),
        agent_results=agent_results,
        rounds=1,
        total_usage=aggregate_usage(agent_results),
    )
