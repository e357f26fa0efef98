"""Entry points for the vote bot and the vote auditor."""

import asyncio
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from .auditor import AuditorBot
from .bot import IRCBot
from .cli import parse_auditor_args, parse_conductor_args
from .client import IRCClient
from .conductor import ConductorBot
from .config.settings import Settings
from .errors import IRCClientError
from .logging_setup import setup_logging
from .messages import set_locale
from .state_machine import VoteMechanics
from .transcript import TranscriptSink

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> IRCClient:
    transcript = TranscriptSink(
        directory=settings.transcript.directory,
        enabled=settings.transcript.enabled,
    )
    return IRCClient(
        transcript=transcript,
        realname=settings.irc.realname,
        register_timeout=settings.irc.register_timeout_seconds,
    )


async def _connect(client: IRCClient, settings: Settings) -> None:
    await client.initialize(
        settings.irc.nick,
        settings.irc.host,
        settings.irc.port,
        settings.irc.use_tls,
    )


async def _shutdown(client: IRCClient) -> None:
    if client.connected:
        try:
            await client.leave_all()
            await client.quit()
        except IRCClientError as e:
            logger.warning("error during shutdown: %s", e)
    await client.close()


async def _serve(client: IRCClient, bot: IRCBot, settings: Settings) -> None:
    client.assign_bot(bot)
    await _connect(client, settings)
    try:
        await bot.start()
        await client.wait_closed()
    finally:
        await bot.stop()
        await _shutdown(client)


async def run_conductor(settings: Settings) -> None:
    """Run the vote bot until the connection ends."""
    client = create_client(settings)
    bot = ConductorBot(
        client,
        VoteMechanics(),
        meeting_channel=settings.votebot.meeting_channel,
        vote_channel=settings.votebot.vote_channel,
        warn_seconds=settings.votebot.warn_seconds,
        timeout_seconds=settings.votebot.timeout_seconds,
        poll_interval=settings.votebot.poll_interval_seconds,
    )
    await _serve(client, bot, settings)


async def run_auditor(settings: Settings) -> None:
    """Run the auditor until the connection ends."""
    client = create_client(settings)
    bot = AuditorBot(
        client,
        target_nick=settings.auditor.target_nick,
        observation_channel=settings.auditor.observation_channel,
    )
    await _serve(client, bot, settings)


def _run(name: str, runner, settings: Settings) -> None:
    setup_logging(settings.log_level, settings.log_file)
    set_locale(settings.locale)

    try:
        asyncio.run(runner(settings))
    except KeyboardInterrupt:
        logger.info("%s shutdown.", name)
    except IRCClientError as e:
        logger.error("error running %s: %s", name, e)
        sys.exit(1)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Start the vote bot."""
    load_dotenv()
    settings = parse_conductor_args(Settings(), argv)
    _run("votebot", run_conductor, settings)


def audit_main(argv: Optional[Sequence[str]] = None) -> None:
    """Start the vote auditor."""
    load_dotenv()
    settings = parse_auditor_args(Settings(), argv)
    _run("voteauditor", run_auditor, settings)


if __name__ == "__main__":
    main()
