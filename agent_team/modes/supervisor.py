"""Supervisor coordination.

One coordinator delegates work to named workers over several rounds.

Protocol:
- The coordinator receives the task and the list of available workers.
- Its output is scanned for ``[DELEGATE: agentName] instructions`` lines;
  each one runs that worker once with the instructions as input.
- Worker outputs (or failure notes) are fed back on the next round.
- ``[FINAL] answer`` ends the run. It takes precedence over any delegation
  in the same response.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..errors import AgentNotFoundError
from ..hooks import TeamHooks
from ..protocol import Agent, AgentResponse, AgentRole, Signal, TeamResult, Usage
from ..utils import is_aborted, run_agent

logger = logging.getLogger(__name__)

DELEGATE_PATTERN = re.compile(r"\[DELEGATE:\s*([^\]]+)\]\s*(.+)")
FINAL_PATTERN = re.compile(r"\[FINAL\]\s*(.*)", re.DOTALL)


@dataclass
class Delegation:
    """A parsed ``[DELEGATE: ...]`` directive."""

    agent_name: str
    instructions: str


@dataclass
class WorkerReport:
    agent_name: str
    text: str


def parse_delegations(text: str) -> List[Delegation]:
    return [
        Delegation(agent_name=m.group(1).strip(), instructions=m.group(2).strip())
        for m in DELEGATE_PATTERN.finditer(text)
    ]


def parse_final(text: str) -> Optional[str]:
    """Answer following ``[FINAL]``, or None when the marker is absent."""
    match = FINAL_PATTERN.search(text)
    return match.group(1).strip() if match else None


def build_briefing(task: str, worker_names: List[str]) -> str:
    return (
        "You are the supervisor. Delegate tasks to your worker agents or provide a final answer.\n\n"
        f"Available workers: {', '.join(worker_names)}\n\n"
        "To delegate, use: [DELEGATE: agentName] task description\n"
        "To give the final answer, use: [FINAL] your final answer\n\n"
        f"Task: {task}"
    )


def build_follow_up(task: str, round_num: int, reports: List[WorkerReport]) -> str:
    summary = "\n\n".join(f"[{r.agent_name}]: {r.text}" for r in reports)
    return (
        f"Worker results from round {round_num}:\n\n{summary}\n\n"
        f"Original task: {task}\n\n"
        "Continue delegating or provide [FINAL] answer."
    )


def resolve_workers(agents: List[AgentRole], supervisor: Agent) -> Dict[str, Agent]:
    """Map worker names to agents.

    A supervisor that is not part of ``agents`` makes every listed agent a
    worker; otherwise the supervisor itself is left out.
    """
    in_team = any(member.name == supervisor.name for member in agents)
    return {
        member.name: member.agent
        for member in agents
        if not in_team or member.name != supervisor.name
    }


async def run_supervisor(
    agents: List[AgentRole],
    input: str,
    max_rounds: int,
    hooks: TeamHooks,
    supervisor: Optional[Agent] = None,
    signal: Optional[Signal] = None,
) -> TeamResult:
    """Run supervisor-led delegation.

    Worker failures and unknown worker names are reported through
    ``on_error`` and turned into feedback for the coordinator. A failure of
    the coordinator itself propagates.
    """
    coordinator = supervisor if supervisor is not None else agents[0].agent
    workers = resolve_workers(agents, coordinator)
    worker_names = list(workers)

    all_results: List[AgentResponse] = []
    total_usage = Usage()
    prompt = build_briefing(input, worker_names)
    rounds_run = 0
    latest: Optional[AgentResponse] = None

    for round_num in range(1, max_rounds + 1):
        if is_aborted(signal):
            logger.info(f"Supervisor run aborted before round {round_num}")
            break

        rounds_run = round_num
        await hooks.emit("on_round_start", round_num)
        await hooks.emit("on_agent_start", coordinator.name, round_num)
        try:
            decision = await run_agent(coordinator, prompt, signal)
        except Exception as e:
            logger.error(f"Supervisor '{coordinator.name}' failed: {e}")
            await hooks.emit("on_error", e)
            raise

        latest = decision
        all_results.append(decision)
        total_usage = total_usage + decision.usage
        await hooks.emit("on_agent_end", coordinator.name, decision, round_num)

        final = parse_final(decision.text)
        delegations = parse_delegations(decision.text) if final is None else []

        if final is not None or not delegations:
            await hooks.emit("on_round_end", round_num, [decision])
            logger.info(f"Supervisor '{coordinator.name}' gave final answer in round {round_num}")
            return TeamResult(
                final_output=final if final is not None else decision.text,
                agent_results=all_results,
                rounds=round_num,
                total_usage=total_usage,
            )

        round_results: List[AgentResponse] = [decision]
        reports: List[WorkerReport] = []

        for delegation in delegations:
            worker = workers.get(delegation.agent_name)
            if worker is None:
                error = AgentNotFoundError(delegation.agent_name, worker_names)
                logger.warning(f"Supervisor delegated to unknown worker '{delegation.agent_name}'")
                await hooks.emit("on_error", error)
                reports.append(WorkerReport(delegation.agent_name, f"Error: {error}"))
                continue

            logger.info(f"Delegating to '{worker.name}' in round {round_num}")
            await hooks.emit("on_agent_start", worker.name, round_num)
            try:
                response = await run_agent(worker, delegation.instructions, signal)
            except Exception as e:
                logger.warning(f"Worker '{worker.name}' failed: {e}")
                await hooks.emit("on_error", e)
                reports.append(WorkerReport(delegation.agent_name, f"Error: {e}"))
                continue

            all_results.append(response)
            round_results.append(response)
            total_usage = total_usage + response.usage
            reports.append(WorkerReport(delegation.agent_name, response.text))
            await hooks.emit("on_agent_end", worker.name, response, round_num)

        await hooks.emit("on_round_end", round_num, round_results)
        prompt = build_follow_up(input, round_num, reports)

    logger.info(f"Supervisor reached round limit ({max_rounds}) without [FINAL]")
    return TeamResult(
        final_output=latest.text if latest is not None else "",
        agent_results=all_results,
        rounds=rounds_run,
        total_usage=total_usage,
    )
