"""Aggregation strategies for parallel coordination."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from .errors import TeamConfigError
from .protocol import AgentResponse
from .utils import format_entries

CustomReducer = Callable[[List[AgentResponse]], str]


class AggregationStrategy(str, Enum):
    FIRST_WINS = "first-wins"
    MAJORITY_VOTE = "majority-vote"
    MERGE_ALL = "merge-all"
    CUSTOM = "custom"


def first_wins(responses: List[AgentResponse]) -> str:
    return responses[0].text if responses else ""


def majority_vote(responses: List[AgentResponse]) -> str:
    """Most common trimmed text; on a tie the group seen first wins."""
    counts: Dict[str, int] = {}
    for response in responses:
        text = response.text.strip()
        counts[text] = counts.get(text, 0) + 1

    best_text = ""
    best_count = 0
    for text, count in counts.items():
        if count > best_count:
            best_text, best_count = text, count
    return best_text


def merge_all(responses: List[AgentResponse]) -> str:
    return format_entries(responses)


def resolve_strategy(strategy: Union[str, AggregationStrategy]) -> AggregationStrategy:
    try:
        return AggregationStrategy(strategy)
    except ValueError:
        raise TeamConfigError(f'Unknown aggregation strategy: "{strategy}"') from None


def aggregate(
    strategy: Union[str, AggregationStrategy],
    responses: List[AgentResponse],
    custom_reducer: Optional[CustomReducer] = None,
) -> str:
    """Apply an aggregation strategy to the surviving responses.

    Args:
        strategy: One of ``first-wins``, ``majority-vote``, ``merge-all``, ``custom``
        responses: Surviving responses in configured agent order
        custom_reducer: Reducer used by the ``custom`` strategy

    Returns:
        The aggregated text; ``""`` when there are no responses

    Raises:
        TeamConfigError: For an unknown strategy or a missing custom reducer
    """
    strategy = resolve_strategy(strategy)
    if not responses:
        return ""

    if strategy is AggregationStrategy.FIRST_WINS:
        return first_wins(responses)
    if strategy is AggregationStrategy.MAJORITY_VOTE:
        return majority_vote(responses)
    if strategy is AggregationStrategy.MERGE_ALL:
        return merge_all(responses)
    if custom_reducer is None:
        raise TeamConfigError(
            'Aggregation strategy "custom" requires a customReducer function.'
        )
    return custom_reducer(responses)
