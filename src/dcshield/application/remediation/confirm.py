"""
Non-interactive confirmers.

The console confirmer lives in the interface layer; these implementations
have no console dependency.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable


class AlwaysConfirm:
    """Answers yes to every question. Used after the forced-mode confirmation."""

    def ask(self, title: str, help_text: str) -> bool:
        return True


class ScriptedConfirmer:
    """
    Replays pre-seeded answers in order and records every question asked.

    Raises:
        RuntimeError: More questions were asked than answers were seeded
    """

    def __init__(self, answers: Iterable[bool]) -> None:
        self._answers = deque(answers)
        self.asked: list[str] = []

    def ask(self, title: str, help_text: str) -> bool:
        self.asked.append(title)
        if not self._answers:
            raise RuntimeError(f"No scripted answer left for: {title}")
        return self._answers.popleft()
