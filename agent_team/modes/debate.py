"""Debate coordination.

Agents argue over several rounds, each seeing every earlier argument.
The debate stops early once all agents give the same answer; otherwise an
optional judge rules on the full transcript.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..hooks import TeamHooks
from ..protocol import Agent, AgentResponse, AgentRole, Signal, TeamResult, Usage
from ..utils import format_entries, is_aborted, run_agent

logger = logging.getLogger(__name__)


@dataclass
class Argument:
    """One agent's contribution in one round."""

    agent_name: str
    round: int
    text: str

    def render(self) -> str:
        return f"[Round {self.round} - {self.agent_name}]: {self.text}"


def has_converged(responses: List[AgentResponse]) -> bool:
    """All responses have the same trimmed text (one or none trivially do)."""
    if len(responses) <= 1:
        return True
    first = responses[0].text.strip()
    return all(r.text.strip() == first for r in responses)


def build_debate_prompt(question: str, history: List[Argument], round_num: int) -> str:
    prompt = f"Original question: {question}\n\n"
    if not history:
        return prompt + f"Round {round_num}: Please provide your initial argument."

    prompt += "Previous arguments:\n"
    for argument in history:
        prompt += f"\n{argument.render()}\n"
    prompt += f"\nRound {round_num}: Please provide your argument, considering all previous positions."
    return prompt


def build_judge_prompt(question: str, history: List[Argument]) -> str:
    prompt = (
        "You are the judge. The following debate has concluded without consensus.\n\n"
        f"Original question: {question}\n\nArguments:\n"
    )
    for argument in history:
        prompt += f"\n{argument.render()}\n"
    prompt += "\nPlease evaluate the arguments and provide your final verdict."
    return prompt


async def _invoke(agent: Agent, prompt: str, hooks: TeamHooks, signal: Optional[Signal]) -> AgentResponse:
    try:
        return await run_agent(agent, prompt, signal)
    except Exception as e:
        logger.error(f"Debate aborted, agent '{agent.name}' failed: {e}")
        await hooks.emit("on_error", e)
        raise


async def run_debate(
    agents: List[AgentRole],
    input: str,
    max_rounds: int,
    hooks: TeamHooks,
    judge: Optional[Agent] = None,
    debate_rounds: Optional[int] = None,
    signal: Optional[Signal] = None,
) -> TeamResult:
    """Run a multi-round debate.

    Args:
        agents: Debaters, in speaking order
        input: The question under debate
        max_rounds: Round limit used when ``debate_rounds`` is not given
        hooks: Lifecycle hooks
        judge: Optional agent that rules when no consensus is reached
        debate_rounds: Round limit override
        signal: Cancellation flag, checked before each round

    Returns:
        TeamResult whose ``final_output`` is the consensus text, the judge's
        verdict, or the last round's arguments merged

    Raises:
        Exception: The first agent error, after ``on_error`` has fired
    """
    rounds = debate_rounds if debate_rounds is not None else max_rounds
    all_results: List[AgentResponse] = []
    history: List[Argument] = []
    total_usage = Usage()
    rounds_run = 0
    last_round: List[AgentResponse] = []

    for round_num in range(1, rounds + 1):
        if is_aborted(signal):
            logger.info(f"Debate aborted before round {round_num}")
            break

        await hooks.emit("on_round_start", round_num)
        # Every agent this round sees the same history of earlier rounds.
        prompt = build_debate_prompt(input, history, round_num)
        round_results: List[AgentResponse] = []

        for member in agents:
            agent = member.agent
            await hooks.emit("on_agent_start", agent.name, round_num)
            response = await _invoke(agent, prompt, hooks, signal)

            round_results.append(response)
            all_results.append(response)
            total_usage = total_usage + response.usage
            await hooks.emit("on_agent_end", agent.name, response, round_num)

        history.extend(Argument(member.name, round_num, r.text) for member, r in zip(agents, round_results))
        await hooks.emit("on_round_end", round_num, round_results)
        rounds_run = round_num
        last_round = round_results

        if has_converged(round_results):
            consensus = round_results[0].text
            logger.info(f"Debate converged in round {round_num}")
            await hooks.emit("on_consensus", round_num, consensus)
            return TeamResult(
                final_output=consensus,
                agent_results=all_results,
                rounds=round_num,
                total_usage=total_usage,
            )

    if judge is not None and rounds_run == rounds:
        judge_round = rounds + 1
        await hooks.emit("on_agent_start", judge.name, judge_round)
        verdict = await _invoke(judge, build_judge_prompt(input, history), hooks, signal)

        all_results.append(verdict)
        total_usage = total_usage + verdict.usage
        await hooks.emit("on_agent_end", judge.name, verdict, judge_round)
        logger.info(f"Debate settled by judge '{judge.name}' after {rounds} rounds")

        return TeamResult(
            final_output=verdict.text,
            agent_results=all_results,
            rounds=rounds,
            total_usage=total_usage,
        )

    return TeamResult(
        final_output=format_entries(last_round),
        agent_results=all_results,
        rounds=rounds_run,
        total_usage=total_usage,
    )
