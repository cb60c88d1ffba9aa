"""Validation of raw team settings before a team is built from them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union

from .aggregation import AggregationStrategy
from .config import CoordinationMode, TeamSettings, load_raw_config
from .errors import TeamConfigError

logger = logging.getLogger(__name__)


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ConfigIssue:
    """A single configuration issue."""
    field: str
    message: str
    severity: Severity


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_config(raw_config: Dict[str, Any]) -> List[ConfigIssue]:
    """Validate raw team settings and return a list of issues.

    Args:
        raw_config: Raw settings dict from YAML

    Returns:
        List of ConfigIssue (empty = valid)
    """
    issues: List[ConfigIssue] = []

    # --- Name ---
    name = raw_config.get("name", "")
    if not name or not isinstance(name, str):
        issues.append(ConfigIssue(
            field="name",
            message="name must be a non-empty string",
            severity=Severity.ERROR,
        ))

    # --- Coordination mode ---
    mode = raw_config.get("coordination_mode")
    valid_modes = [m.value for m in CoordinationMode]
    if mode not in valid_modes:
        issues.append(ConfigIssue(
            field="coordination_mode",
            message=f"coordination_mode must be one of {', '.join(valid_modes)}, got {mode!r}",
            severity=Severity.ERROR,
        ))
    elif mode == CoordinationMode.CUSTOM.value:
        issues.append(ConfigIssue(
            field="coordination_mode",
            message="custom mode needs a coordination function supplied in code",
            severity=Severity.WARNING,
        ))

    # --- Agents ---
    agents = raw_config.get("agents")
    if not isinstance(agents, list) or not agents:
        issues.append(ConfigIssue(
            field="agents",
            message="agents must be a non-empty list of agent names",
            severity=Severity.ERROR,
        ))
    elif not all(isinstance(a, str) and a for a in agents):
        issues.append(ConfigIssue(
            field="agents",
            message="every entry in agents must be a non-empty agent name",
            severity=Severity.ERROR,
        ))

    # --- Max rounds ---
    max_rounds = raw_config.get("max_rounds", 10)
    if not _is_positive_int(max_rounds):
        issues.append(ConfigIssue(
            field="max_rounds",
            message=f"max_rounds must be a positive integer, got {max_rounds!r}",
            severity=Severity.ERROR,
        ))

    # --- Parallel options ---
    strategy = raw_config.get("aggregation_strategy", AggregationStrategy.MERGE_ALL.value)
    valid_strategies = [s.value for s in AggregationStrategy]
    if strategy not in valid_strategies:
        issues.append(ConfigIssue(
            field="aggregation_strategy",
            message=f"aggregation_strategy must be one of {', '.join(valid_strategies)}, got {strategy!r}",
            severity=Severity.ERROR,
        ))

    timeout = raw_config.get("agent_timeout_ms")
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0
    ):
        issues.append(ConfigIssue(
            field="agent_timeout_ms",
            message=f"agent_timeout_ms must be a positive number, got {timeout!r}",
            severity=Severity.ERROR,
        ))

    # --- Debate options ---
    rounds = raw_config.get("rounds")
    if rounds is not None and not _is_positive_int(rounds):
        issues.append(ConfigIssue(
            field="rounds",
            message=f"rounds must be a positive integer, got {rounds!r}",
            severity=Severity.ERROR,
        ))

    if mode != CoordinationMode.DEBATE.value and raw_config.get("judge"):
        issues.append(ConfigIssue(
            field="judge",
            message="judge is only used in debate mode",
            severity=Severity.WARNING,
        ))
    if mode != CoordinationMode.SUPERVISOR.value and raw_config.get("supervisor"):
        issues.append(ConfigIssue(
            field="supervisor",
            message="supervisor is only used in supervisor mode",
            severity=Severity.WARNING,
        ))

    return issues


def has_errors(issues: List[ConfigIssue]) -> bool:
    """Check if any issues are errors (not just warnings)."""
    return any(e.severity == Severity.ERROR for e in issues)


def load_team_settings(config_path: Union[str, Path]) -> TeamSettings:
    """Load, validate and parse team settings from a YAML file.

    Warnings are logged; errors are collected into one TeamConfigError.
    """
    raw = load_raw_config(config_path)
    issues = validate_config(raw)
    for issue in issues:
        if issue.severity == Severity.WARNING:
            logger.warning(f"{config_path}: {issue.field}: {issue.message}")
    if has_errors(issues):
        details = "; ".join(f"{i.field}: {i.message}" for i in issues if i.severity == Severity.ERROR)
        raise TeamConfigError(f"Invalid team config {config_path}: {details}")
    return TeamSettings.model_validate(raw)
