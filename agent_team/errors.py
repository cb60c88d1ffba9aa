"""Exception taxonomy for team coordination."""

from __future__ import annotations


class TeamError(Exception):
    """Base class for errors raised by the team engine."""

    pass


class TeamConfigError(TeamError, ValueError):
    """Raised for invalid team configuration, before any agent runs."""

    pass


class AgentTimeoutError(TeamError, TimeoutError):
    """Raised (and tolerated) when a parallel agent exceeds its timeout."""

    def __init__(self, agent_name: str, timeout_ms: float):
        super().__init__(f'Agent "{agent_name}" timed out after {timeout_ms:g}ms')
        self.agent_name = agent_name
        self.timeout_ms = timeout_ms


class AgentNotFoundError(TeamError, LookupError):
    """Raised (and tolerated) when a supervisor delegates to an unknown worker."""

    def __init__(self, agent_name: str, available: list):
        super().__init__(
            f'Agent "{agent_name}" not found. Available: {", ".join(available)}'
        )
        self.agent_name = agent_name
        self.available = list(available)


class TracingError(TeamError):
    """Raised when the tracer is asked about an unknown trace or span."""

    pass
