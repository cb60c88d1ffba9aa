"""Tests for parallel coordination and aggregation."""

import asyncio
import time

import pytest

from agent_team.aggregation import aggregate
from agent_team.errors import AgentTimeoutError, TeamConfigError
from agent_team.hooks import TeamHooks
from agent_team.modes.parallel import run_parallel
from agent_team.protocol import AgentResponse, Usage
from agent_team.utils import normalize_agents


def _responses(*pairs):
    return [AgentResponse(text=text, agent_name=name) for name, text in pairs]


class TestAggregate:
    """Tests for aggregate()."""

    def test_first_wins(self):
        assert aggregate("first-wins", _responses(("a", "X"), ("b", "Y"))) == "X"

    def test_merge_all(self):
        merged = aggregate("merge-all", _responses(("a", "one"), ("b", "two")))
        assert merged == "[a]: one\n\n[b]: two"

    def test_majority_vote(self):
        assert aggregate("majority-vote", _responses(("a", "A"), ("b", "B"), ("c", "A"))) == "A"

    def test_majority_vote_tie_goes_to_first_group(self):
        assert aggregate("majority-vote", _responses(("a", "A"), ("b", "B"))) == "A"

    def test_majority_vote_groups_by_trimmed_text(self):
        result = aggregate("majority-vote", _responses(("a", "B"), ("b", " A "), ("c", "A\n")))
        assert result == "A"

    def test_custom_reducer(self):
        reducer = lambda responses: "|".join(r.text for r in responses)
        assert aggregate("custom", _responses(("a", "1"), ("b", "2")), reducer) == "1|2"

    def test_custom_without_reducer(self):
        with pytest.raises(TeamConfigError, match='"custom" requires a customReducer function'):
            aggregate("custom", _responses(("a", "1")))

    @pytest.mark.parametrize("strategy", ["first-wins", "majority-vote", "merge-all", "custom"])
    def test_empty_responses(self, strategy):
        assert aggregate(strategy, []) == ""

    def test_unknown_strategy(self):
        with pytest.raises(TeamConfigError, match="Unknown aggregation strategy"):
            aggregate("loudest", _responses(("a", "1")))


class TestRunParallel:
    """Tests for run_parallel()."""

    @pytest.mark.asyncio
    async def test_all_agents_get_same_input(self, make_agent):
        agents = [make_agent("a", "A"), make_agent("b", "B"), make_agent("c", "C")]

        result = await run_parallel(normalize_agents(agents), "Question", 10, TeamHooks())

        assert [a.inputs for a in agents] == [["Question"]] * 3
        assert result.rounds == 1
        assert [r.agent_name for r in result.agent_results] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_merge_all_is_default(self, make_agent):
        agents = normalize_agents([make_agent("a", "Result A"), make_agent("b", "Result B")])

        result = await run_parallel(agents, "task", 10, TeamHooks())

        assert result.final_output == "[a]: Result A\n\n[b]: Result B"

    @pytest.mark.asyncio
    async def test_failures_are_excluded(self, make_agent):
        errors = []
        agents = normalize_agents([
            make_agent("ok1", "fine", usage=Usage(1, 1, 2)),
            make_agent("bad", error=RuntimeError("kaput"), usage=Usage(100, 100, 200)),
            make_agent("ok2", "also fine", usage=Usage(3, 3, 6)),
        ])

        result = await run_parallel(agents, "task", 10, TeamHooks(on_error=errors.append))

        assert len(result.agent_results) == 2
        assert result.total_usage == Usage(4, 4, 8)
        assert [str(e) for e in errors] == ["kaput"]

    @pytest.mark.asyncio
    async def test_timeout_is_graceful(self, make_agent):
        errors = []
        agents = normalize_agents([make_agent("fast", "quick"), make_agent("slow", "late", delay=0.5)])

        result = await run_parallel(
            agents, "task", 10, TeamHooks(on_error=errors.append), agent_timeout_ms=20
        )

        assert [r.agent_name for r in result.agent_results] == ["fast"]
        assert len(errors) == 1
        assert isinstance(errors[0], AgentTimeoutError)
        assert str(errors[0]) == 'Agent "slow" timed out after 20ms'

    @pytest.mark.asyncio
    async def test_first_wins_follows_config_order(self, make_agent):
        agents = normalize_agents([
            make_agent("a", "X", delay=0.05),
            make_agent("b", "Y", delay=0.5),
            make_agent("c", "Z"),
        ])

        result = await run_parallel(
            agents, "task", 10, TeamHooks(), aggregation_strategy="first-wins", agent_timeout_ms=150
        )

        assert result.final_output == "X"
        assert [r.agent_name for r in result.agent_results] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_timed_out_call_is_not_cancelled(self, make_agent):
        finished = asyncio.Event()

        async def slow_reply(input, signal=None):
            await asyncio.sleep(0.05)
            finished.set()
            return AgentResponse(text="late", agent_name="slow")

        slow = make_agent("slow")
        slow.run = slow_reply

        result = await run_parallel(normalize_agents([slow]), "task", 10, TeamHooks(), agent_timeout_ms=5)
        assert result.agent_results == []

        await asyncio.wait_for(finished.wait(), timeout=1)
        assert finished.is_set()

    @pytest.mark.asyncio
    async def test_majority_vote_run(self, make_agent):
        agents = normalize_agents([make_agent("a", "A"), make_agent("b", "B"), make_agent("c", "A")])

        result = await run_parallel(agents, "task", 10, TeamHooks(), aggregation_strategy="majority-vote")

        assert result.final_output == "A"

    @pytest.mark.asyncio
    async def test_custom_without_reducer_fails_before_agents_run(self, make_agent):
        agent = make_agent("a", "A")

        with pytest.raises(TeamConfigError):
            await run_parallel(normalize_agents([agent]), "task", 10, TeamHooks(), aggregation_strategy="custom")
        assert agent.calls == 0

    @pytest.mark.asyncio
    async def test_all_failed_gives_empty_output(self, make_agent):
        agents = normalize_agents([make_agent("a", error=RuntimeError("x")), make_agent("b", error=RuntimeError("y"))])

        result = await run_parallel(agents, "task", 10, TeamHooks())

        assert result.final_output == ""
        assert result.agent_results == []
        assert result.total_usage == Usage()

    @pytest.mark.asyncio
    async def test_hooks_for_each_agent(self, make_agent):
        events = []
        hooks = TeamHooks(
            on_round_start=lambda r: events.append(("round_start", r)),
            on_agent_start=lambda name, r: events.append(("start", name)),
            on_agent_end=lambda name, response, r: events.append(("end", name)),
            on_round_end=lambda r, results: events.append(("round_end", len(results))),
        )
        agents = normalize_agents([make_agent("a", "A"), make_agent("b", error=RuntimeError("no"))])

        await run_parallel(agents, "task", 10, hooks)

        assert events == [("round_start", 1), ("start", "a"), ("start", "b"), ("end", "a"), ("round_end", 1)]

    @pytest.mark.asyncio
    async def test_agents_run_concurrently(self, make_agent):
        agents = normalize_agents([make_agent(f"a{i}", "ok", delay=0.1) for i in range(5)])

        started = time.monotonic()
        await run_parallel(agents, "task", 10, TeamHooks())
        elapsed = time.monotonic() - started

        assert elapsed < 0.4
