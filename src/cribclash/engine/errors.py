"""Rule violations raised by the engine.

Every error is raised before the offending call mutates the match, so callers
can report it and keep rendering the unchanged state.
"""

from __future__ import annotations


class RulesError(RuntimeError):
    pass


class PhaseMismatch(RulesError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Expected phase {expected} but was {actual}.")
        self.expected = expected
        self.actual = actual


class NotPlayerTurn(RulesError):
    pass


class CardNotInHand(RulesError):
    pass


class CountExceeded(RulesError):
    pass


class DeckEmpty(RulesError):
    """The deck ran out. Unreachable under correct sequencing."""


class IllegalGoWithLegalPlay(RulesError):
    pass


class InvalidDiscardCount(RulesError):
    pass


class StarterNotCut(RulesError):
    pass


class SnapshotError(RulesError):
    pass
