"""Observability for team runs - logging setup, traces and nested spans."""

from __future__ import annotations

import inspect
import itertools
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union, runtime_checkable

from typing_extensions import Protocol

from .errors import TracingError
from .hooks import TeamHooks
from .protocol import AgentResponse

logger = logging.getLogger(__name__)

SPAN_OK = "ok"
SPAN_ERROR = "error"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a formatted stream handler to the package logger once."""
    package_logger = logging.getLogger("agent_team")
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return package_logger


@dataclass
class SpanEvent:
    """A discrete event recorded inside a span."""

    name: str
    timestamp: float
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Span:
    """A named timed interval within a trace."""

    id: str
    name: str
    start_time: float
    parent_id: Optional[str] = None
    end_time: Optional[float] = None
    status: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    events: List[SpanEvent] = field(default_factory=list)

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000


@dataclass
class Trace:
    """Run-level container grouping related spans."""

    id: str
    name: str
    start_time: float
    end_time: Optional[float] = None
    spans: List[Span] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)

    def find_span(self, name: str) -> Optional[Span]:
        for span in self.spans:
            if span.name == name:
                return span
        return None

    def children_of(self, span_id: str) -> List[Span]:
        return [s for s in self.spans if s.parent_id == span_id]


TraceExporter = Callable[[Trace], Union[None, Awaitable[None]]]


@runtime_checkable
class TracerProtocol(Protocol):
    """Tracing capability the team engine consumes."""

    def start_trace(self, name: str, attributes: Optional[Dict[str, Any]] = None) -> Any: ...

    def start_span(
        self,
        trace_id: str,
        name: str,
        parent_id: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Any: ...

    def end_span(
        self,
        trace_id: str,
        span_id: str,
        status: str = SPAN_OK,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None: ...

    def end_trace(self, trace_id: str, attributes: Optional[Dict[str, Any]] = None) -> Any: ...


_id_counter = itertools.count(1)


def generate_id() -> str:
    return f"{uuid.uuid4().hex[:12]}-{next(_id_counter)}"


class Tracer:
    """In-memory tracer holding active traces until they end.

    Example:
        tracer = Tracer(exporters=[collected.append])
        trace = tracer.start_trace("agent-run")
        span = tracer.start_span(trace.id, "llm-call")
        tracer.end_span(trace.id, span.id, "ok")
        await tracer.end_trace(trace.id)
    """

    def __init__(self, exporters: Optional[List[TraceExporter]] = None):
        self._traces: Dict[str, Trace] = {}
        self.exporters: List[TraceExporter] = list(exporters or [])

    def _get_trace(self, trace_id: str) -> Trace:
        trace = self._traces.get(trace_id)
        if trace is None:
            raise TracingError(f'Trace "{trace_id}" not found.')
        return trace

    def _get_span(self, trace_id: str, span_id: str) -> Span:
        trace = self._get_trace(trace_id)
        for span in trace.spans:
            if span.id == span_id:
                return span
        raise TracingError(f'Span "{span_id}" not found in trace "{trace_id}".')

    def start_trace(self, name: str, attributes: Optional[Dict[str, Any]] = None) -> Trace:
        trace = Trace(
            id=generate_id(),
            name=name,
            start_time=time.time(),
            attributes=dict(attributes or {}),
        )
        self._traces[trace.id] = trace
        logger.debug(f"Trace started: {name} ({trace.id})")
        return trace

    def start_span(
        self,
        trace_id: str,
        name: str,
        parent_id: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Span:
        trace = self._get_trace(trace_id)
        span = Span(
            id=generate_id(),
            name=name,
            start_time=time.time(),
            parent_id=parent_id,
            attributes=dict(attributes or {}),
        )
        trace.spans.append(span)
        return span

    def add_event(
        self,
        trace_id: str,
        span_id: str,
        name: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        span = self._get_span(trace_id, span_id)
        span.events.append(SpanEvent(name=name, timestamp=time.time(), attributes=dict(attributes or {})))

    def end_span(
        self,
        trace_id: str,
        span_id: str,
        status: str = SPAN_OK,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        span = self._get_span(trace_id, span_id)
        span.end_time = time.time()
        span.status = status
        span.attributes.update(attributes or {})

    async def end_trace(self, trace_id: str, attributes: Optional[Dict[str, Any]] = None) -> Trace:
        """End a trace, run every exporter and drop it from the active set.

        A failing exporter is logged and skipped; the others still run.
        """
        trace = self._get_trace(trace_id)
        trace.end_time = time.time()
        trace.attributes.update(attributes or {})

        try:
            for exporter in self.exporters:
                try:
                    result = exporter(trace)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.warning(f"Trace exporter failed for {trace.name} ({trace.id}): {e}")
        finally:
            self._traces.pop(trace_id, None)

        logger.debug(f"Trace ended: {trace.name} ({len(trace.spans)} spans)")
        return trace

    def get_trace(self, trace_id: str) -> Optional[Trace]:
        return self._traces.get(trace_id)

    def get_active_traces(self) -> List[Trace]:
        return list(self._traces.values())

    def __repr__(self) -> str:
        return f"Tracer(active_traces={len(self._traces)}, exporters={len(self.exporters)})"


def instrument_hooks(
    hooks: TeamHooks,
    tracer: TracerProtocol,
    trace_id: str,
    root_span_id: str,
) -> Tuple[TeamHooks, Callable[[], None]]:
    """Wrap ``hooks`` so rounds and agents also open and close spans.

    Round spans parent to the root span; agent spans parent to the round
    span open at the time, or to the root span outside a round. The caller's
    own hooks still run after the span bookkeeping.

    Returns:
        The wrapped hooks and a function that closes every span still open
        with status ``error`` (used when a run fails mid-round).
    """
    round_spans: Dict[int, str] = {}
    agent_spans: Dict[Tuple[str, int], str] = {}
    open_rounds: List[int] = []

    def _parent_for_agent() -> str:
        if open_rounds:
            return round_spans[open_rounds[-1]]
        return root_span_id

    async def on_round_start(round_num: int) -> None:
        span = tracer.start_span(trace_id, f"round-{round_num}", root_span_id, {"round": round_num})
        round_spans[round_num] = span.id
        open_rounds.append(round_num)
        await hooks.emit("on_round_start", round_num)

    async def on_agent_start(agent_name: str, round_num: int) -> None:
        span = tracer.start_span(
            trace_id,
            f"agent:{agent_name}",
            _parent_for_agent(),
            {"agent": agent_name, "round": round_num},
        )
        agent_spans[(agent_name, round_num)] = span.id
        await hooks.emit("on_agent_start", agent_name, round_num)

    async def on_agent_end(agent_name: str, response: AgentResponse, round_num: int) -> None:
        span_id = agent_spans.pop((agent_name, round_num), None)
        if span_id is not None:
            tracer.end_span(
                trace_id,
                span_id,
                SPAN_OK,
                {"total_tokens": response.usage.total_tokens},
            )
        await hooks.emit("on_agent_end", agent_name, response, round_num)

    async def on_round_end(round_num: int, results: List[AgentResponse]) -> None:
        # Agents that never reported an end in this round failed.
        for key in [k for k in agent_spans if k[1] == round_num]:
            tracer.end_span(trace_id, agent_spans.pop(key), SPAN_ERROR)
        span_id = round_spans.pop(round_num, None)
        if round_num in open_rounds:
            open_rounds.remove(round_num)
        if span_id is not None:
            tracer.end_span(trace_id, span_id, SPAN_OK, {"results": len(results)})
        await hooks.emit("on_round_end", round_num, results)

    def close_open_spans() -> None:
        for key in list(agent_spans):
            tracer.end_span(trace_id, agent_spans.pop(key), SPAN_ERROR)
        for round_num in list(round_spans):
            tracer.end_span(trace_id, round_spans.pop(round_num), SPAN_ERROR)
        open_rounds.clear()

    wrapped = hooks.replace(
        on_round_start=on_round_start,
        on_agent_start=on_agent_start,
        on_agent_end=on_agent_end,
        on_round_end=on_round_end,
    )
    return wrapped, close_open_spans
