"""Fit a conversation into a fixed character budget."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .types import Role, Turn

logger = logging.getLogger("tagproxy")

# Character count, not tokens.
DEFAULT_MAX_CONTEXT_CHARS = 700_000


@dataclass
class ContextBudget:
    """Running character total for one trimming pass."""

    limit: int = DEFAULT_MAX_CONTEXT_CHARS
    used_chars: int = 0

    def fits(self, length: int) -> bool:
        return self.used_chars + length <= self.limit

    def charge(self, length: int) -> None:
        self.used_chars += length

    @property
    def remaining(self) -> int:
        return self.limit - self.used_chars


def trim_turns(
    system_prompt: str,
    turns: Sequence[Turn],
    max_chars: int = DEFAULT_MAX_CONTEXT_CHARS,
) -> list[Turn]:
    """Select the newest turns that fit alongside the system prompt.

    The system prompt is charged against the budget first. Turns are then
    taken newest to oldest until one would overflow; that turn and every
    older one are dropped whole. Leading non-user turns are removed so the
    upstream always sees the requester speak first.

    Args:
        system_prompt: Synthesized system prompt (may be empty).
        turns: Conversation turns, oldest first.
        max_chars: Character budget for prompt plus kept turns.

    Returns:
        A system turn (when the prompt is non-empty) followed by the kept
        turns in their original order.
    """
    budget = ContextBudget(limit=max_chars)
    budget.charge(len(system_prompt))

    start = len(turns)
    for index in range(len(turns) - 1, -1, -1):
        length = len(turns[index].text)
        if not budget.fits(length):
            break
        budget.charge(length)
        start = index

    kept = list(turns[start:])
    if start > 0:
        logger.info(
            "Context trimmed: dropped %d of %d turns (%d/%d chars used)",
            start,
            len(turns),
            budget.used_chars,
            budget.limit,
        )

    while kept and kept[0].role is not Role.USER:
        kept.pop(0)

    result: list[Turn] = []
    if system_prompt:
        result.append(Turn(Role.SYSTEM, system_prompt))
    result.extend(kept)
    return result
