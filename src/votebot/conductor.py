"""Conductor bot: runs votes and publishes their results."""

import asyncio
import logging
import math
from enum import Enum
from typing import Optional

from .bot import IRCBot
from .client import IRCClient
from .errors import InvalidNickName, VoteStateError
from .messages import t
from .models import VoteState
from .state_machine import VoteMechanics

logger = logging.getLogger(__name__)


class VoteBotCommand(Enum):
    """Commands accepted by private message."""
    VOTE = "VOTE"
    HELP = "HELP"
    CANCEL = "CANCEL"


class ConductorBot(IRCBot):
    """Accepts commands privately, counts ballots in the vote channel and
    announces every step of a vote in both the meeting and vote channels.

    Handlers and timer ticks hold the bot lock for their whole duration,
    so an announcement sequence is never interleaved with another one.
    The mechanics' own lock is always taken inside the bot lock.
    """

    def __init__(
        self,
        irc_client: IRCClient,
        vote_mechanics: VoteMechanics,
        meeting_channel: str = "meeting",
        vote_channel: str = "vote",
        warn_seconds: int = 90,
        timeout_seconds: int = 120,
        poll_interval: float = 1.0,
    ):
        super().__init__(irc_client)
        self.vote_mechanics = vote_mechanics
        self.meeting_channel = meeting_channel
        self.vote_channel = vote_channel
        self.warn_seconds = warn_seconds
        self.timeout_seconds = timeout_seconds
        self.poll_interval = poll_interval

        self._lock = asyncio.Lock()
        self._timer_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Join both channels and start the timer task."""
        await self.irc_client.join(self.meeting_channel)
        await self.irc_client.join(self.vote_channel)
        self._timer_task = asyncio.create_task(self.run_timer(), name="vote-timer")

    async def stop(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

    async def public_message(self, sender: str, channel: str, message: str) -> None:
        if channel != self.vote_channel:
            return
        async with self._lock:
            response = self.vote_mechanics.evaluate_vote(sender, message)
            await self.send_public_message(self.vote_channel, response)

    async def private_message(self, sender: str, message: str) -> None:
        parts = message.split(maxsplit=1)
        if not parts:
            return

        try:
            command = VoteBotCommand(parts[0].upper())
        except ValueError:
            await self._reply(sender, t("unknown_command").format(parts[0]))
            return

        async with self._lock:
            match command:
                case VoteBotCommand.VOTE:
                    if len(parts) < 2:
                        await self._reply(sender, t("missing_topic"))
                    else:
                        await self._start_vote(sender, parts[1])
                case VoteBotCommand.HELP:
                    await self._reply(sender, t("help_message"))
                case VoteBotCommand.CANCEL:
                    await self._cancel_vote(sender)

    async def _start_vote(self, sender: str, topic: str) -> None:
        result = self.vote_mechanics.call_vote(topic, self.warn_seconds, self.timeout_seconds)
        await self._reply(sender, result.message)
        if not result.accepted:
            return

        logger.info("%s started a vote on %r", sender, topic)
        await self._announce(t("new_vote").format(sender, topic))
        await self.send_public_message(
            self.meeting_channel, t("cast_vote_in_vote_channel").format(self.vote_channel)
        )
        await self.send_public_message(
            self.vote_channel, t("cast_vote_in_next_seconds").format(self.timeout_seconds)
        )

    async def _cancel_vote(self, sender: str) -> None:
        try:
            message = self.vote_mechanics.stop_vote(sender)
        except VoteStateError as e:
            await self._reply(sender, str(e))
            return

        logger.info("%s cancelled the vote", sender)
        await self._announce(message)
        await self._reply(sender, t("vote_cancelled"))

    async def _reply(self, sender: str, message: str) -> None:
        # nicks the client cannot address still get their command executed
        try:
            await self.send_private_message(sender, message)
        except InvalidNickName as e:
            logger.warning("cannot reply to %s: %s", sender, e)

    async def _announce(self, message: str) -> None:
        await self.send_public_message(self.meeting_channel, message)
        await self.send_public_message(self.vote_channel, message)

    async def run_timer(self) -> None:
        """Poll the mechanics' deadlines until cancelled.

        A failed tick is logged and retried on the next poll.
        """
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("timer tick failed")
            await asyncio.sleep(self.poll_interval)

    async def tick(self) -> None:
        """Drive the time-based transitions of the current vote once."""
        async with self._lock:
            mechanics = self.vote_mechanics
            match mechanics.state:
                case VoteState.IDLE:
                    return
                case VoteState.RUNNING:
                    await self._check_deadlines()
                case VoteState.STOPPING:
                    await self._publish_results()

    async def _check_deadlines(self) -> None:
        mechanics = self.vote_mechanics
        now = mechanics.clock()
        if now >= mechanics.end_at:
            try:
                message = mechanics.stop_vote("timeout")
            except VoteStateError as e:
                logger.info("vote already stopped: %s", e)
                return
            await self._announce(message)
        elif now >= mechanics.warn_at and not mechanics.warned:
            remaining = math.ceil(mechanics.end_at - now)
            await self._announce(
                t("voting_will_end_in_n_seconds").format(mechanics.topic, remaining)
            )
            mechanics.mark_warned()

    async def _publish_results(self) -> None:
        mechanics = self.vote_mechanics
        topic = mechanics.topic
        await self._announce(t("voting_has_closed").format(topic))
        results = mechanics.close_vote()
        logger.info("vote on %r closed: %s", topic, ", ".join(results))
        await self._announce(t("results_for_vote").format(topic))
        for line in results:
            await self._announce(line)
