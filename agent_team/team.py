"""Team engine - the factory and the per-run orchestration.

``create_team(config)`` returns a Team that dispatches each run to the
runner of its coordination mode, with optional tracing around it.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, cast

from .config import (
    CustomOptions,
    DebateOptions,
    ModeOptions,
    ParallelOptions,
    SupervisorOptions,
    TeamConfig,
)
from .errors import TeamConfigError
from .hooks import TeamHooks
from .modes import run_custom, run_debate, run_parallel, run_sequential, run_supervisor
from .modes.custom import CoordinationFn
from .protocol import AgentRole, Signal, TeamResult
from .tracing import SPAN_ERROR, SPAN_OK, instrument_hooks
from .utils import normalize_agents

logger = logging.getLogger(__name__)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Team:
    """A configured team ready to run collaborative tasks.

    Example:
        team = create_team(TeamConfig(
            name="review",
            agents=[researcher, writer],
            coordination_mode="parallel",
            options=ParallelOptions(aggregation_strategy="majority-vote"),
        ))
        result = await team.run("Summarize the findings")
    """

    def __init__(self, config: TeamConfig):
        if not config.agents:
            raise TeamConfigError("A team requires at least one agent.")

        self.config = config
        self.name = config.name
        self.coordination_mode = config.coordination_mode
        self.agents: List[AgentRole] = normalize_agents(config.agents)
        names = [a.name for a in self.agents]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise TeamConfigError(f"Agent names must be unique within a team: {', '.join(duplicates)}")
        self.hooks = config.hooks or TeamHooks()

    async def run(self, input: str, signal: Optional[Signal] = None) -> TeamResult:
        """Run the team on ``input``.

        Args:
            input: The task for the team
            signal: Optional cancellation flag (``asyncio.Event`` or similar)

        Returns:
            TeamResult produced by the coordination mode

        Raises:
            TeamConfigError: For configuration problems, before any agent runs
            Exception: Any error propagated by the coordination mode, unchanged
        """
        mode = self.config.resolve_mode()
        options = self.config.resolve_options(mode)
        if isinstance(options, CustomOptions) and options.coordination_fn is None:
            raise TeamConfigError('Custom coordination mode requires a "coordination_fn" in the config.')

        logger.info(f"Team '{self.name}' starting {mode.value} run with {len(self.agents)} agents")

        tracer = self.config.tracer
        if tracer is None:
            result = await self._dispatch(options, input, self.hooks, signal)
            logger.info(f"Team '{self.name}' finished after {result.rounds} round(s)")
            return result

        trace = tracer.start_trace(
            f"team:{self.name}",
            {"team": self.name, "coordination_mode": mode.value, "input": input},
        )
        root = tracer.start_span(trace.id, "team-run")
        hooks, close_open_spans = instrument_hooks(self.hooks, tracer, trace.id, root.id)

        try:
            result = await self._dispatch(options, input, hooks, signal)
        except BaseException as e:
            await self._close_trace(trace.id, root.id, SPAN_ERROR, {"error": str(e)}, close_open_spans)
            raise

        await self._close_trace(
            trace.id,
            root.id,
            SPAN_OK,
            {"rounds": result.rounds, "total_tokens": result.total_usage.total_tokens},
        )
        logger.info(f"Team '{self.name}' finished after {result.rounds} round(s)")
        return result

    async def _close_trace(
        self,
        trace_id: str,
        root_span_id: str,
        status: str,
        attributes: Dict[str, Any],
        close_open_spans: Optional[Callable[[], None]] = None,
    ) -> None:
        """End the root span and the trace; tracer failures are only logged."""
        tracer = self.config.tracer
        try:
            if close_open_spans is not None:
                close_open_spans()
            tracer.end_span(trace_id, root_span_id, status, attributes)
        except Exception as e:
            logger.warning(f"Team '{self.name}' could not close spans of trace {trace_id}: {e}")
        try:
            await _maybe_await(tracer.end_trace(trace_id))
        except Exception as e:
            logger.warning(f"Team '{self.name}' could not end trace {trace_id}: {e}")

    async def _dispatch(
        self,
        options: ModeOptions,
        input: str,
        hooks: TeamHooks,
        signal: Optional[Signal],
    ) -> TeamResult:
        max_rounds = self.config.max_rounds

        if isinstance(options, ParallelOptions):
            return await run_parallel(
                self.agents,
                input,
                max_rounds,
                hooks,
                options.aggregation_strategy,
                options.custom_reducer,
                options.agent_timeout_ms,
                signal,
            )

        if isinstance(options, DebateOptions):
            return await run_debate(
                self.agents, input, max_rounds, hooks, options.judge, options.rounds, signal
            )

        if isinstance(options, SupervisorOptions):
            return await run_supervisor(
                self.agents, input, max_rounds, hooks, options.supervisor, signal
            )

        if isinstance(options, CustomOptions):
            coordination_fn = cast(CoordinationFn, options.coordination_fn)
            return await run_custom(self.agents, input, max_rounds, hooks, coordination_fn)

        return await run_sequential(self.agents, input, max_rounds, hooks, signal)

    def __repr__(self) -> str:
        return (
            f"Team(name={self.name!r}, "
            f"coordination_mode={self.coordination_mode!r}, "
            f"agents={[a.name for a in self.agents]!r})"
        )


def create_team(config: TeamConfig) -> Team:
    """Create a multi-agent team.

    Raises:
        TeamConfigError: If the config has no agents or repeats an agent name
    """
    return Team(config)
