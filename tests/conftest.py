"""Global pytest fixtures: scripted fake agents for deterministic team runs."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Sequence, Union

import pytest

from agent_team.protocol import AgentResponse, Usage

Reply = Union[str, Sequence[str], Callable[[str], str]]


class FakeAgent:
    """Agent double that records its inputs and replies from a script.

    ``replies`` may be a single string, a list consumed one per call (the
    last entry repeats), or a function of the input.
    """

    def __init__(
        self,
        name: str,
        replies: Reply = "",
        usage: Optional[Usage] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None,
    ):
        self.name = name
        self.replies = replies
        self.usage = usage or Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15)
        self.delay = delay
        self.error = error
        self.inputs: List[str] = []
        self.signals: List[object] = []

    def _next_reply(self, input: str) -> str:
        if callable(self.replies):
            return self.replies(input)
        if isinstance(self.replies, str):
            return self.replies
        index = min(len(self.inputs) - 1, len(self.replies) - 1)
        return self.replies[index]

    async def run(self, input: str, signal=None) -> AgentResponse:
        self.inputs.append(input)
        self.signals.append(signal)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return AgentResponse(text=self._next_reply(input), usage=self.usage, agent_name=self.name)

    @property
    def calls(self) -> int:
        return len(self.inputs)


@pytest.fixture
def make_agent() -> Callable[..., FakeAgent]:
    """Factory fixture: ``make_agent("name", "reply", delay=..., error=...)``."""
    return FakeAgent
