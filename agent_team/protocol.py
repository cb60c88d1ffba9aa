"""Protocol definitions shared by every coordination mode."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, runtime_checkable

from typing_extensions import Protocol


@dataclass
class Usage:
    """Token usage reported by an agent invocation."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: Usage) -> Usage:
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class AgentResponse:
    """Response from a single agent run.

    Attributes:
        text: Final text produced by the agent
        usage: Token usage for the run
        agent_name: Name of the agent that produced the response
        tool_calls: Tool calls made during the run
        steps: Optional reasoning steps reported by the agent
    """

    text: str
    usage: Usage = field(default_factory=Usage)
    agent_name: str = ""
    tool_calls: List[Any] = field(default_factory=list)
    steps: List[Any] = field(default_factory=list)


@runtime_checkable
class Signal(Protocol):
    """Cooperative cancellation flag (``asyncio.Event`` satisfies it)."""

    def is_set(self) -> bool: ...


@runtime_checkable
class Agent(Protocol):
    """The only capability the engine needs from an agent."""

    name: str

    async def run(self, input: str, signal: Optional[Signal] = None) -> AgentResponse: ...


@dataclass
class AgentRole:
    """An agent assigned to a team with a specific role.

    Attributes:
        agent: The agent instance
        role: Role the agent plays in the team
        description: Human-readable description of its responsibility
        can_delegate: Whether the agent may delegate work to others
    """

    agent: Agent
    role: str = "member"
    description: Optional[str] = None
    can_delegate: bool = False

    @property
    def name(self) -> str:
        return self.agent.name


@dataclass
class TeamResult:
    """Result from a team run.

    ``agent_results`` only holds invocations whose output was used by the
    coordination mode; failed calls never leave a placeholder.
    """

    final_output: str
    agent_results: List[AgentResponse] = field(default_factory=list)
    rounds: int = 1
    total_usage: Usage = field(default_factory=Usage)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "final_output": self.final_output,
            "agent_results": [
                {"agent_name": r.agent_name, "text": r.text, "usage": r.usage.to_dict()}
                for r in self.agent_results
            ],
            "rounds": self.rounds,
            "total_usage": self.total_usage.to_dict(),
        }


@dataclass
class TeamMessage:
    """A message passed between agents through the message bus."""

    from_agent: str
    to_agent: str
    content: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class TeamContext:
    """Run-scoped state handed to a custom coordination function.

    Attributes:
        blackboard: Shared key-value store for the run
        current_round: Current round number (1-indexed)
        previous_results: Results from earlier rounds
        send_message: ``send_message(from_agent, to_agent, content)``
        get_messages: ``get_messages(agent_name)`` -> messages addressed to it
    """

    blackboard: Any
    current_round: int
    previous_results: List[AgentResponse]
    send_message: Callable[[str, str, str], Any]
    get_messages: Callable[[str], List[TeamMessage]]
