"""Domain models for the vote bots."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import NamedTuple

from .errors import ClassificationError


class VoteKind(Enum):
    """Ballot values, in the order results are published."""
    AYE = ("aye", "yes", "oui", "ja")
    NAYE = ("naye", "nay", "no", "non", "nein")
    ABSTAIN = ("abstain", "enthaltung", "abs")

    def __init__(self, *variants: str):
        self.variants = frozenset(variants)

    def __str__(self) -> str:
        return self.name

    @classmethod
    def classify(cls, word: str) -> "VoteKind":
        """Map a ballot word to its kind, ignoring case and surrounding space."""
        normalized = word.strip().lower()
        for kind in cls:
            if normalized in kind.variants:
                return kind
        raise ClassificationError(word)


class VoteState(Enum):
    """Lifecycle of the single vote a mechanics instance conducts."""
    IDLE = auto()
    RUNNING = auto()
    STOPPING = auto()


class AuditMode(Enum):
    """Receive state of the auditor."""
    WATCHING = auto()
    CAPTURING = auto()


class VoteCallResult(NamedTuple):
    """Outcome of asking the mechanics to start a vote."""
    accepted: bool
    message: str


@dataclass
class VoteSession:
    """A running (or stopping) vote. Monotonic-clock deadlines."""
    topic: str
    warn_at: float
    end_at: float
    ballots: dict[str, VoteKind] = field(default_factory=dict)
    warned: bool = False
