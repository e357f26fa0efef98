"""Vote state machine shared by the conductor and the auditor."""

import re
import threading
import time
from collections import Counter
from typing import Callable, Optional

from .errors import ClassificationError, VoteStateError
from .messages import t
from .models import VoteCallResult, VoteKind, VoteSession, VoteState


class VoteMechanics:
    """Conducts one vote at a time: IDLE -> RUNNING -> STOPPING -> IDLE.

    Every operation runs under a single lock, so a mechanics instance may
    be shared between the IRC reader task and the conductor's timer.
    """

    PROXY_REGEX = re.compile(r"^\s*proxy\s.*", re.DOTALL)
    PROXY_PART_COUNT = 3

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._lock = threading.Lock()
        self._state = VoteState.IDLE
        self._session: Optional[VoteSession] = None

    @property
    def state(self) -> VoteState:
        with self._lock:
            return self._state

    @property
    def topic(self) -> str:
        with self._lock:
            return self._session.topic if self._session else ""

    @property
    def warn_at(self) -> Optional[float]:
        with self._lock:
            return self._session.warn_at if self._session else None

    @property
    def end_at(self) -> Optional[float]:
        with self._lock:
            return self._session.end_at if self._session else None

    @property
    def warned(self) -> bool:
        with self._lock:
            return self._session.warned if self._session else False

    @property
    def ballots(self) -> dict[str, VoteKind]:
        """Copy of the ballots cast so far."""
        with self._lock:
            return dict(self._session.ballots) if self._session else {}

    def current_result(self) -> str:
        """Ballots rendered as ``{alice=AYE, bob=NAYE}`` in casting order."""
        with self._lock:
            ballots = self._session.ballots if self._session else {}
            return "{" + ", ".join(f"{voter}={kind}" for voter, kind in ballots.items()) + "}"

    def mark_warned(self) -> None:
        """Latch the one-shot warning flag of the current vote."""
        with self._lock:
            if self._session is not None:
                self._session.warned = True

    def call_vote(self, topic: str, warn_seconds: int, timeout_seconds: int) -> VoteCallResult:
        """Start a new vote on ``topic``.

        A warning deadline later than the end deadline is accepted; the
        vote then closes without a warning being due first.
        """
        if warn_seconds < 0 or timeout_seconds < 0:
            raise ValueError("vote deadlines must not be negative")

        with self._lock:
            if self._state != VoteState.IDLE:
                return VoteCallResult(False, t("vote_running"))

            now = self.clock()
            self._session = VoteSession(
                topic=topic,
                warn_at=now + warn_seconds,
                end_at=now + timeout_seconds,
            )
            self._state = VoteState.RUNNING
            return VoteCallResult(True, t("vote_started"))

    def evaluate_vote(self, actor: str, text: str) -> str:
        """Record the ballot in ``text`` sent by ``actor``, honouring proxies.

        Returns the message to echo back to the vote channel.
        """
        with self._lock:
            if self._state != VoteState.RUNNING:
                return t("no_vote_running").format(actor)

            if self.PROXY_REGEX.match(text.lower()):
                parts = text.split()
                if len(parts) != self.PROXY_PART_COUNT:
                    return t("invalid_proxy_vote").format(actor)
                voter, value = parts[1], parts[2]
            else:
                voter, value = actor, text.strip()

            try:
                kind = VoteKind.classify(value)
            except ClassificationError:
                return t("vote_not_understood").format(actor)

            self._session.ballots[voter] = kind

            if voter == actor:
                return t("count_vote").format(actor, kind)
            return t("count_proxy_vote").format(actor, voter, kind)

    def stop_vote(self, source: str) -> str:
        """Move a running vote to STOPPING; ``source`` names who stopped it."""
        with self._lock:
            if self._state != VoteState.RUNNING:
                raise VoteStateError(t("no_vote_running_private"))

            self._state = VoteState.STOPPING
            return t("finishing_vote").format(self._session.topic, source)

    def close_vote(self) -> list[str]:
        """Finish a stopping vote and return one ``KIND: count`` line per kind."""
        with self._lock:
            if self._state != VoteState.STOPPING:
                raise VoteStateError(t("cannot_close_running_vote"))

            counts = Counter(self._session.ballots.values())
            results = [f"{kind}: {counts[kind]}" for kind in VoteKind]

            self._session = None
            self._state = VoteState.IDLE
            return results
