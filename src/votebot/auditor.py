"""Auditor bot: replays a conductor's vote and checks its published tally."""

import asyncio
import logging
import re
from typing import Optional

from .bot import IRCBot
from .client import IRCClient
from .errors import VoteStateError
from .models import AuditMode, VoteKind
from .state_machine import VoteMechanics

logger = logging.getLogger(__name__)


class AuditorBot(IRCBot):
    """Watches the observation channel and recounts every ballot.

    Only lines from ``target_nick`` can start a vote or deliver results;
    everybody else's lines are replayed as ballots on the auditor's own
    mechanics. When the conductor publishes its results the auditor
    closes its own vote and compares both result lists.
    """

    NEW_VOTE_PREFIX = "New Vote: "
    RESULTS_PREFIX = "Results: "
    NEW_VOTE_REGEX = re.compile(r'New Vote: (.*) has started a vote on "(.*)"')

    def __init__(
        self,
        irc_client: IRCClient,
        target_nick: str,
        observation_channel: str = "vote",
        vote_mechanics: Optional[VoteMechanics] = None,
    ):
        super().__init__(irc_client)
        self.target_nick = target_nick
        self.observation_channel = observation_channel
        self.vote_mechanics = vote_mechanics or VoteMechanics()

        self.mode = AuditMode.WATCHING
        self.captured_results: list[str] = []
        self.last_audit_passed = None
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        await self.irc_client.join(self.observation_channel)

    async def public_message(self, sender: str, channel: str, message: str) -> None:
        if channel != self.observation_channel:
            return

        async with self._lock:
            if sender == self.target_nick:
                self._handle_target_message(message)
            elif self.mode == AuditMode.CAPTURING:
                logger.info("vote after end from %s ignored", sender)
            else:
                self._replay_ballot(sender, message)

    async def private_message(self, sender: str, message: str) -> None:
        logger.debug("ignoring private message from %s", sender)

    def _handle_target_message(self, message: str) -> None:
        if self.mode == AuditMode.CAPTURING:
            self.captured_results.append(message)
            if len(self.captured_results) == len(VoteKind):
                self._reconcile()
            return

        if message.startswith(self.NEW_VOTE_PREFIX):
            match = self.NEW_VOTE_REGEX.fullmatch(message)
            if match is None:
                logger.warning("malformed vote start: %s", message)
                return
            logger.info("detected vote start on %r", match.group(2))
            result = self.vote_mechanics.call_vote(match.group(2), 0, 0)
            if not result.accepted:
                logger.warning("vote started while another was being audited: %s", message)
        elif message.startswith(self.RESULTS_PREFIX):
            logger.info("detected vote end, reading results")
            self.mode = AuditMode.CAPTURING
            self.captured_results = []

    def _replay_ballot(self, sender: str, message: str) -> None:
        response = self.vote_mechanics.evaluate_vote(sender, message)
        logger.debug("replayed ballot from %s: %s", sender, response)
        logger.info("current state: %s", self.vote_mechanics.current_result())

    def _reconcile(self) -> None:
        captured = self.captured_results
        self.mode = AuditMode.WATCHING
        self.captured_results = []

        try:
            self.vote_mechanics.stop_vote("audit")
            computed = self.vote_mechanics.close_vote()
        except VoteStateError as e:
            logger.warning("audit failed: no vote was being replayed (%s)", e)
            self.last_audit_passed = False
            return

        self.last_audit_passed = computed == captured
        if self.last_audit_passed:
            logger.info("audit successful: %s", ", ".join(computed))
        else:
            logger.warning(
                "audit failed: published %s but counted %s", captured, computed
            )
