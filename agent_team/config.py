"""Team configuration: the per-mode option variants and YAML settings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field

from .aggregation import AggregationStrategy, CustomReducer
from .errors import TeamConfigError
from .hooks import TeamHooks
from .modes.custom import CoordinationFn
from .protocol import Agent, AgentRole
from .tracing import TracerProtocol

DEFAULT_MAX_ROUNDS = 10


class CoordinationMode(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    DEBATE = "debate"
    SUPERVISOR = "supervisor"
    CUSTOM = "custom"


@dataclass
class SequentialOptions:
    """Sequential mode takes no extra options."""


@dataclass
class ParallelOptions:
    aggregation_strategy: Union[str, AggregationStrategy] = AggregationStrategy.MERGE_ALL
    custom_reducer: Optional[CustomReducer] = None
    agent_timeout_ms: Optional[float] = None


@dataclass
class DebateOptions:
    judge: Optional[Agent] = None
    rounds: Optional[int] = None


@dataclass
class SupervisorOptions:
    supervisor: Optional[Agent] = None


@dataclass
class CustomOptions:
    coordination_fn: Optional[CoordinationFn] = None


ModeOptions = Union[SequentialOptions, ParallelOptions, DebateOptions, SupervisorOptions, CustomOptions]

MODE_OPTIONS = {
    CoordinationMode.SEQUENTIAL: SequentialOptions,
    CoordinationMode.PARALLEL: ParallelOptions,
    CoordinationMode.DEBATE: DebateOptions,
    CoordinationMode.SUPERVISOR: SupervisorOptions,
    CoordinationMode.CUSTOM: CustomOptions,
}


@dataclass
class TeamConfig:
    """Configuration for creating a team.

    Attributes:
        name: Team name, used for the trace name
        agents: Plain agents and/or role-assigned agents
        coordination_mode: One of the CoordinationMode values
        max_rounds: Round limit for the multi-round modes
        hooks: Lifecycle hooks
        tracer: Optional tracer; enables span instrumentation
        options: Mode-specific options; the mode's defaults when omitted
    """

    name: str
    agents: List[Union[Agent, AgentRole]]
    coordination_mode: Union[str, CoordinationMode]
    max_rounds: int = DEFAULT_MAX_ROUNDS
    hooks: Optional[TeamHooks] = None
    tracer: Optional[TracerProtocol] = None
    options: Optional[ModeOptions] = None

    def resolve_mode(self) -> CoordinationMode:
        try:
            return CoordinationMode(self.coordination_mode)
        except ValueError:
            raise TeamConfigError(f'Unknown coordination mode: "{self.coordination_mode}"') from None

    def resolve_options(self, mode: CoordinationMode) -> ModeOptions:
        """The options variant for ``mode``, checking it matches."""
        expected = MODE_OPTIONS[mode]
        if self.options is None:
            return expected()
        if not isinstance(self.options, expected):
            raise TeamConfigError(
                f"{type(self.options).__name__} does not apply to coordination mode "
                f'"{mode.value}"; expected {expected.__name__}'
            )
        return self.options


class TeamSettings(BaseModel):
    """Declarative team settings, as read from a YAML file."""

    name: str
    coordination_mode: CoordinationMode
    agents: List[str]
    max_rounds: int = DEFAULT_MAX_ROUNDS
    aggregation_strategy: AggregationStrategy = AggregationStrategy.MERGE_ALL
    agent_timeout_ms: Optional[float] = None
    rounds: Optional[int] = None
    judge: Optional[str] = None
    supervisor: Optional[str] = None
    roles: Dict[str, str] = Field(default_factory=dict)


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        base_value = merged.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(base_value, value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> Dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise TeamConfigError(f"Config file must be a mapping: {path}")
    return data


def load_raw_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load a raw settings mapping from YAML.

    A sibling ``<stem>.local.yaml`` (e.g. ``team.local.yaml`` next to
    ``team.yaml``) is deep-merged over the base file when present.

    Raises:
        FileNotFoundError: If the base file does not exist
        TeamConfigError: If a file does not hold a mapping
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    data = _load_yaml(path)
    local_path = path.with_name(f"{path.stem}.local{path.suffix}")
    if local_path != path and local_path.exists():
        data = _deep_merge(data, _load_yaml(local_path))
    return data


def _lookup(agents_by_name: Mapping[str, Agent], name: str, field_name: str) -> Agent:
    agent = agents_by_name.get(name)
    if agent is None:
        raise TeamConfigError(f'{field_name} refers to unknown agent "{name}"')
    return agent


def build_team_config(
    settings: TeamSettings,
    agents_by_name: Mapping[str, Agent],
    hooks: Optional[TeamHooks] = None,
    tracer: Optional[TracerProtocol] = None,
    coordination_fn: Optional[CoordinationFn] = None,
    custom_reducer: Optional[CustomReducer] = None,
) -> TeamConfig:
    """Resolve agent names in ``settings`` and produce a TeamConfig.

    Raises:
        TeamConfigError: If a name does not match any agent in ``agents_by_name``
    """
    members: List[Union[Agent, AgentRole]] = []
    for name in settings.agents:
        agent = _lookup(agents_by_name, name, "agents")
        role = settings.roles.get(name)
        members.append(AgentRole(agent=agent, role=role) if role else agent)

    mode = settings.coordination_mode
    options: ModeOptions
    if mode is CoordinationMode.PARALLEL:
        options = ParallelOptions(
            aggregation_strategy=settings.aggregation_strategy,
            custom_reducer=custom_reducer,
            agent_timeout_ms=settings.agent_timeout_ms,
        )
    elif mode is CoordinationMode.DEBATE:
        judge = _lookup(agents_by_name, settings.judge, "judge") if settings.judge else None
        options = DebateOptions(judge=judge, rounds=settings.rounds)
    elif mode is CoordinationMode.SUPERVISOR:
        supervisor = (
            _lookup(agents_by_name, settings.supervisor, "supervisor") if settings.supervisor else None
        )
        options = SupervisorOptions(supervisor=supervisor)
    elif mode is CoordinationMode.CUSTOM:
        options = CustomOptions(coordination_fn=coordination_fn)
    else:
        options = SequentialOptions()

    return TeamConfig(
        name=settings.name,
        agents=members,
        coordination_mode=mode,
        max_rounds=settings.max_rounds,
        hooks=hooks,
        tracer=tracer,
        options=options,
    )
