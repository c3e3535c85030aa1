"""
Analysis Trigger

Decides on every chat turn whether a new difficulty analysis should run.
Needs a minimum amount of evidence, then fires periodically to bound the
number of classification calls.
"""

from typing import Iterable

from adaptive_sage_tutor.conversation import ConversationTurn, Role


class AnalysisTrigger:
    """
    Periodic analysis policy.

    Analyse iff count >= min_turns and count % interval == 0.
    With the defaults (3, 5) that is 5, 10, 15, ...
    """

    DEFAULT_MIN_TURNS = 3
    DEFAULT_INTERVAL = 5

    def __init__(self, min_turns: int = DEFAULT_MIN_TURNS, interval: int = DEFAULT_INTERVAL):
        if min_turns < 0:
            raise ValueError("min_turns must be non-negative")
        if interval < 1:
            raise ValueError("interval must be at least 1")
        self.min_turns = min_turns
        self.interval = interval

    def should_analyze(self, turn_count: int) -> bool:
        if turn_count < 0:
            raise ValueError(f"turn_count must be non-negative, got {turn_count}")
        return turn_count >= self.min_turns and turn_count % self.interval == 0


def count_turns(turns: Iterable[ConversationTurn], scope: str = "conversation") -> int:
    """
    Count the turns the trigger is evaluated against.

    The default counts learner and tutor turns alike, not only learner-authored
    ones. The tutor's reply is persisted with every request, so after the
    learner's n-th message is stored the history holds 2n - 1 turns. Counting
    both roles places the first analysis on the learner's third message (fifth
    turn) and every fifth turn after it, which is the cadence the learner-state
    history was recorded with. "user" scope counts learner turns only, giving
    one analysis per five learner messages.

    Args:
        turns: Conversation history for one (user, path)
        scope: "conversation" counts every turn, "user" only learner turns
    """
    if scope == "conversation":
        return sum(1 for _ in turns)
    if scope == "user":
        return sum(1 for turn in turns if turn.role == Role.USER)
    raise ValueError(f"Unknown trigger scope: {scope!r}")
