"""Shared test helpers: a scripted random source and a Qt application."""
import random

from PyQt6.QtCore import QCoreApplication

_APP = None


def qt_app() -> QCoreApplication:
    global _APP
    _APP = QCoreApplication.instance() or QCoreApplication([])
    return _APP


class ScriptedRandom:
    """
    Random source whose choice() returns queued answers first, in order,
    then falls back to seeded draws once the script runs out.
    """

    def __init__(self, *answers, seed: int = 1234):
        self._fallback = random.Random(seed)
        self.answers = list(answers)

    def push(self, *answers) -> None:
        self.answers.extend(answers)

    def choice(self, seq):
        if self.answers:
            return self.answers.pop(0)
        return self._fallback.choice(seq)


class BrokenRandom:
    """A random source that fails on every draw."""

    def choice(self, seq):
        raise ValueError("entropy pool exhausted")
