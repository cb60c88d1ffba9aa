"""Tests for sequential (pipeline) coordination."""

import asyncio

import pytest

from agent_team.hooks import TeamHooks
from agent_team.modes.sequential import run_sequential
from agent_team.protocol import Usage
from agent_team.utils import normalize_agents


class TestRunSequential:
    """Tests for run_sequential()."""

    @pytest.mark.asyncio
    async def test_each_agent_gets_previous_output(self, make_agent):
        first = make_agent("first", lambda text: f"{text} -> first")
        second = make_agent("second", lambda text: f"{text} -> second")
        third = make_agent("third", lambda text: f"{text} -> third")

        result = await run_sequential(normalize_agents([first, second, third]), "start", 10, TeamHooks())

        assert first.inputs == ["start"]
        assert second.inputs == ["start -> first"]
        assert third.inputs == ["start -> first -> second"]
        assert result.final_output == "start -> first -> second -> third"
        assert result.rounds == 1
        assert len(result.agent_results) == 3

    @pytest.mark.asyncio
    async def test_done_marker_ends_pipeline(self, make_agent):
        last = make_agent("last", "never")
        agents = normalize_agents([make_agent("a", "step"), make_agent("b", "finished [DONE]"), last])

        result = await run_sequential(agents, "start", 10, TeamHooks())

        assert result.final_output == "finished [DONE]"
        assert last.calls == 0

    @pytest.mark.asyncio
    async def test_usage_across_agents(self, make_agent):
        agents = normalize_agents([make_agent("a", "A", usage=Usage(1, 1, 2)), make_agent("b", "B", usage=Usage(2, 3, 5))])

        result = await run_sequential(agents, "start", 10, TeamHooks())

        assert result.total_usage == Usage(3, 4, 7)

    @pytest.mark.asyncio
    async def test_error_propagates(self, make_agent):
        errors = []
        after = make_agent("after", "unused")
        agents = normalize_agents([make_agent("a", error=RuntimeError("pipe burst")), after])

        with pytest.raises(RuntimeError, match="pipe burst"):
            await run_sequential(agents, "start", 10, TeamHooks(on_error=errors.append))

        assert len(errors) == 1
        assert after.calls == 0

    @pytest.mark.asyncio
    async def test_hooks_use_round_one(self, make_agent):
        rounds = []
        hooks = TeamHooks(on_agent_start=lambda name, r: rounds.append((name, r)))

        await run_sequential(normalize_agents([make_agent("a", "A"), make_agent("b", "B")]), "x", 10, hooks)

        assert rounds == [("a", 1), ("b", 1)]

    @pytest.mark.asyncio
    async def test_abort_stops_before_next_agent(self, make_agent):
        signal = asyncio.Event()
        second = make_agent("second", "unused")
        hooks = TeamHooks(on_agent_end=lambda name, response, r: signal.set())

        result = await run_sequential(
            normalize_agents([make_agent("first", "one"), second]), "x", 10, hooks, signal=signal
        )

        assert result.final_output == "one"
        assert second.calls == 0

    @pytest.mark.asyncio
    async def test_single_agent(self, make_agent):
        result = await run_sequential(normalize_agents([make_agent("solo", "only")]), "x", 10, TeamHooks())

        assert result.final_output == "only"
        assert len(result.agent_results) == 1
