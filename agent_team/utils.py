"""Shared helpers for the coordination modes."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Union

from .protocol import Agent, AgentResponse, AgentRole, Signal, Usage


def normalize_agents(agents: Sequence[Union[Agent, AgentRole]]) -> List[AgentRole]:
    """Wrap plain agents as ``AgentRole(role="member")``; pass roles through."""
    roles: List[AgentRole] = []
    for entry in agents:
        if isinstance(entry, AgentRole):
            roles.append(entry)
        else:
            roles.append(AgentRole(agent=entry, role="member"))
    return roles


def aggregate_usage(responses: Iterable[AgentResponse]) -> Usage:
    """Sum usage across agent responses."""
    total = Usage()
    for response in responses:
        total = total + response.usage
    return total


def format_entries(responses: Iterable[AgentResponse]) -> str:
    """Render responses as ``[agentName]: text`` blocks separated by a blank line."""
    return "\n\n".join(f"[{r.agent_name}]: {r.text}" for r in responses)


async def run_agent(agent: Agent, input: str, signal: Optional[Signal] = None) -> AgentResponse:
    """Run an agent, forwarding the cancellation signal only when one is given."""
    if signal is None:
        return await agent.run(input)
    return await agent.run(input, signal=signal)


def is_aborted(signal: Optional[Signal]) -> bool:
    return signal is not None and signal.is_set()
