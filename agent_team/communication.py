"""Communication primitives for custom coordination.

Provides a shared blackboard (key-value store), a message bus for
point-to-point messages, and a structured handoff between agents.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .protocol import AgentResponse, TeamContext, TeamMessage


class MessageBus:
    """Append-only log of messages exchanged between agents.

    Example:
        bus = MessageBus()
        bus.send("researcher", "writer", "Sources are in the blackboard")
        inbox = bus.get_for("writer")
    """

    def __init__(self):
        self._messages: List[TeamMessage] = []

    def send(self, from_agent: str, to_agent: str, content: str) -> TeamMessage:
        message = TeamMessage(from_agent=from_agent, to_agent=to_agent, content=content)
        self._messages.append(message)
        return message

    def get_for(self, agent_name: str) -> List[TeamMessage]:
        """Messages addressed to ``agent_name``, oldest first."""
        return [m for m in self._messages if m.to_agent == agent_name]

    def get_from(self, agent_name: str) -> List[TeamMessage]:
        """Messages sent by ``agent_name``, oldest first."""
        return [m for m in self._messages if m.from_agent == agent_name]

    def all(self) -> List[TeamMessage]:
        return list(self._messages)

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"MessageBus(messages={len(self._messages)})"


class Blackboard:
    """Shared key-value store visible to every agent of one team run.

    Example:
        board = Blackboard()
        board.set("draft", text)
        if "draft" in board:
            draft = board.get("draft")
    """

    def __init__(self, initial_data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial_data or {})

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._data

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns whether it existed."""
        if key in self._data:
            del self._data[key]
            return True
        return False

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def to_dict(self) -> Dict[str, Any]:
        """Copy of the stored data."""
        return self._data.copy()

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __repr__(self) -> str:
        return f"Blackboard(keys={list(self._data.keys())})"


@dataclass
class Handoff:
    """A structured handoff from one agent to the next."""

    from_agent: str
    to_agent: str
    output: str
    instructions: Optional[str] = None


def create_handoff(
    from_agent: str,
    to_agent: str,
    response: AgentResponse,
    instructions: Optional[str] = None,
) -> Handoff:
    """Create a handoff carrying ``response.text`` to the receiving agent."""
    return Handoff(
        from_agent=from_agent,
        to_agent=to_agent,
        output=response.text,
        instructions=instructions,
    )


def format_handoff_input(handoff: Handoff) -> str:
    """Format a handoff as input text for the receiving agent."""
    parts = [f"[Handoff from {handoff.from_agent}]", handoff.output]
    if handoff.instructions:
        parts.append(f"[Instructions: {handoff.instructions}]")
    return "\n\n".join(parts)


def create_team_context(
    blackboard: Blackboard,
    message_bus: MessageBus,
    current_round: int = 1,
    previous_results: Optional[List[AgentResponse]] = None,
) -> TeamContext:
    """Bind a blackboard and message bus into a TeamContext."""
    return TeamContext(
        blackboard=blackboard,
        current_round=current_round,
        previous_results=list(previous_results or []),
        send_message=message_bus.send,
        get_messages=message_bus.get_for,
    )
