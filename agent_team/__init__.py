"""Multi-agent team coordination engine.

Runs a set of independent agents under one coordination policy -
sequential pipeline, parallel fan-out with aggregation, multi-round debate,
supervisor-led delegation, or a custom strategy - and produces one
synthesized result.
"""

from .aggregation import AggregationStrategy, aggregate
from .communication import (
    Blackboard,
    Handoff,
    MessageBus,
    create_handoff,
    create_team_context,
    format_handoff_input,
)
from .config import (
    CoordinationMode,
    CustomOptions,
    DebateOptions,
    ParallelOptions,
    SequentialOptions,
    SupervisorOptions,
    TeamConfig,
    TeamSettings,
    build_team_config,
    load_raw_config,
)
from .config_validator import load_team_settings, validate_config
from .errors import (
    AgentNotFoundError,
    AgentTimeoutError,
    TeamConfigError,
    TeamError,
    TracingError,
)
from .hooks import TeamHooks
from .protocol import (
    Agent,
    AgentResponse,
    AgentRole,
    TeamContext,
    TeamMessage,
    TeamResult,
    Usage,
)
from .team import Team, create_team
from .tracing import Tracer, configure_logging

__all__ = [
    "Agent",
    "AgentNotFoundError",
    "AgentResponse",
    "AgentRole",
    "AgentTimeoutError",
    "AggregationStrategy",
    "Blackboard",
    "CoordinationMode",
    "CustomOptions",
    "DebateOptions",
    "Handoff",
    "MessageBus",
    "ParallelOptions",
    "SequentialOptions",
    "SupervisorOptions",
    "Team",
    "TeamConfig",
    "TeamConfigError",
    "TeamContext",
    "TeamError",
    "TeamHooks",
    "TeamMessage",
    "TeamResult",
    "TeamSettings",
    "Tracer",
    "TracingError",
    "Usage",
    "aggregate",
    "build_team_config",
    "configure_logging",
    "create_handoff",
    "create_team",
    "create_team_context",
    "format_handoff_input",
    "load_raw_config",
    "load_team_settings",
    "validate_config",
]
