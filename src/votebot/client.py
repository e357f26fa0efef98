"""IRC client: connection, registration, channel membership and dispatch."""

import asyncio
import logging
import re
import ssl
from typing import Optional

from .bot import IRCBot
from .codec import LineReader, LineWriter
from .errors import (
    InvalidChannelName,
    InvalidNickName,
    IRCClientError,
    MalformedLine,
    NoBotAssigned,
    TransportError,
)
from .transcript import TranscriptSink

logger = logging.getLogger(__name__)


class IRCClient:
    """Speaks the small subset of RFC 1459 the vote bots need.

    One reader task consumes the server's lines and awaits the bound
    bot's handlers in receipt order. Handlers may call back into the
    client to send; outbound lines go through a separately locked writer.
    """

    NICK_REGEX = re.compile(r"[a-zA-Z0-9_-]+")
    CHANNEL_REGEX = re.compile(r"[a-zA-Z0-9_-]+")

    DEFAULT_TLS_PORT = 7000
    DEFAULT_PLAIN_PORT = 6667

    def __init__(
        self,
        transcript: Optional[TranscriptSink] = None,
        realname: str = "CAcert VoteBot",
        register_timeout: float = 60.0,
    ):
        self.transcript = transcript or TranscriptSink(enabled=False)
        self.realname = realname
        self.register_timeout = register_timeout
        self.nick: Optional[str] = None
        self.bot: Optional[IRCBot] = None
        self.joined_channels: set[str] = set()

        self._channels_lock = asyncio.Lock()
        self._registered = asyncio.Event()
        self._reader: Optional[LineReader] = None
        self._writer: Optional[LineWriter] = None
        self._reader_task: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._reader_task is not None and not self._reader_task.done()

    async def initialize(
        self,
        nick: str,
        host: str,
        port: Optional[int] = None,
        use_tls: bool = True,
    ) -> "IRCClient":
        """Connect, register as ``nick`` and wait for the server's welcome."""
        if not self.NICK_REGEX.fullmatch(nick):
            raise InvalidNickName(nick)
        if port is None:
            port = self.DEFAULT_TLS_PORT if use_tls else self.DEFAULT_PLAIN_PORT

        ssl_context = ssl.create_default_context() if use_tls else None
        logger.info("connecting to %s:%d (tls=%s) as %s", host, port, use_tls, nick)
        try:
            reader, writer = await asyncio.open_connection(host, port, ssl=ssl_context)
        except OSError as e:
            raise TransportError(f"cannot connect to {host}:{port}: {e}") from e

        self.nick = nick
        self._reader = LineReader(reader)
        self._writer = LineWriter(writer)
        self._reader_task = asyncio.create_task(self._read_loop(), name="irc-client-reader")

        await self._write(f"NICK {nick}")
        await self._write(f"USER {nick} 0 * :{self.realname}")
        await self._wait_registered()
        return self

    async def _wait_registered(self) -> None:
        waiter = asyncio.create_task(self._registered.wait())
        await asyncio.wait(
            {waiter, self._reader_task},
            timeout=self.register_timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
        if not self._registered.is_set():
            waiter.cancel()
            await self.close()
            raise TransportError("registration with the IRC server did not complete")
        logger.info("registered as %s", self.nick)

    def assign_bot(self, bot: IRCBot) -> None:
        self.bot = bot

    def _require_bot(self) -> IRCBot:
        if self.bot is None:
            raise NoBotAssigned()
        return self.bot

    def _check_channel_preconditions(self, channel: str) -> None:
        self._require_bot()
        if not self.CHANNEL_REGEX.fullmatch(channel):
            raise InvalidChannelName(channel)

    def _check_private_message_preconditions(self, nick: str) -> None:
        self._require_bot()
        if not self.NICK_REGEX.fullmatch(nick):
            raise InvalidNickName(nick)

    async def _write(self, line: str) -> None:
        if self._writer is None:
            raise TransportError("not connected")
        await self._writer.write_line(line)

    async def join(self, channel: str) -> None:
        self._check_channel_preconditions(channel)
        async with self._channels_lock:
            if channel in self.joined_channels:
                return
            self.joined_channels.add(channel)
            await self._write(f"JOIN #{channel}")

    async def leave(self, channel: str) -> None:
        self._check_channel_preconditions(channel)
        async with self._channels_lock:
            if channel not in self.joined_channels:
                return
            self.joined_channels.discard(channel)
            await self._write(f"PART #{channel}")

    async def leave_all(self) -> None:
        """Part every joined channel; used at shutdown."""
        for channel in list(self.joined_channels):
            try:
                await self.leave(channel)
            except IRCClientError as e:
                logger.error("error leaving #%s: %s", channel, e)

    async def _send_lines(self, target: str, message: str) -> None:
        # trailing newlines produce no extra lines
        for line in message.rstrip("\n").split("\n"):
            await self._write(f"PRIVMSG {target} :{line or ' '}")

    async def send(self, message: str, channel: str) -> None:
        """Send ``message`` to ``#channel``, one PRIVMSG per line."""
        self._check_channel_preconditions(channel)
        await self._send_lines(f"#{channel}", message)

    async def send_private(self, message: str, nick: str) -> None:
        self._check_private_message_preconditions(nick)
        await self._send_lines(nick, message)

    async def quit(self) -> None:
        await self._write("QUIT")

    async def wait_closed(self) -> None:
        """Wait until the reader task has terminated."""
        if self._reader_task is not None:
            await asyncio.wait({self._reader_task})

    async def close(self) -> None:
        task = self._reader_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            await asyncio.wait({task})
        if self._writer is not None:
            await self._writer.close()
        await self.transcript.close()

    async def _read_loop(self) -> None:
        try:
            while True:
                try:
                    line = await self._reader.read_line()
                except MalformedLine as e:
                    logger.warning("skipping unreadable line: %s", e)
                    continue
                if line is None:
                    break
                try:
                    await self.handle_line(line)
                except TransportError:
                    raise
                except IRCClientError as e:
                    logger.warning("skipping line %r: %s", line, e)
            logger.info("connection closed by server")
        except TransportError as e:
            logger.error("IRC connection failed: %s", e)
        except asyncio.CancelledError:
            logger.debug("reader cancelled")
            raise
        except Exception:
            logger.exception("reader terminated by unexpected error")

    async def handle_line(self, line: str) -> None:
        """Interpret one line received from the server."""
        if line.startswith("PING "):
            logger.debug("PONG")
            await self._write("PONG " + line[len("PING "):])
            return

        full_line = line
        prefix = ""
        if line.startswith(":"):
            prefix, _, line = line.partition(" ")
            if not line:
                raise MalformedLine(f"no command after prefix: {full_line}")

        fields = line.split(" ", 2)
        command = fields[0]

        if command == "001":
            self._registered.set()

        match command:
            case "PRIVMSG":
                await self._handle_privmsg(prefix, fields, full_line)
            case "JOIN":
                await self._handle_membership(prefix, fields, full_line, joined=True)
            case "PART":
                await self._handle_membership(prefix, fields, full_line, joined=False)
            case _:
                logger.info("unknown line: %s", line)

    @staticmethod
    def _sender_nick(prefix: str) -> str:
        nick = prefix.split("!", 1)[0]
        if not nick.startswith(":") or len(nick) == 1:
            raise MalformedLine(f"invalid message prefix {prefix!r}")
        return nick[1:]

    async def _handle_privmsg(self, prefix: str, fields: list[str], full_line: str) -> None:
        if len(fields) < 3:
            raise MalformedLine(f"incomplete PRIVMSG: {full_line}")
        bot = self._require_bot()
        sender = self._sender_nick(prefix)

        target, body = fields[1], fields[2]
        if body.startswith(":"):
            body = body[1:]

        await self.transcript.append(target, full_line)
        if target.startswith("#"):
            await bot.public_message(sender, target[1:], body)
        else:
            await bot.private_message(sender, body)

    async def _handle_membership(
        self, prefix: str, fields: list[str], full_line: str, joined: bool
    ) -> None:
        if len(fields) < 2:
            raise MalformedLine(f"missing channel: {full_line}")
        bot = self._require_bot()
        sender = self._sender_nick(prefix)

        channel = fields[1]
        if channel.startswith(":"):
            channel = channel[1:]
        if channel.startswith("#"):
            channel = channel[1:]

        await self.transcript.append(f"#{channel}", full_line)
        if joined:
            await bot.join(sender, channel)
        else:
            await bot.part(sender, channel)
