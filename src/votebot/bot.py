"""Abstract event handler bound to an IRC client."""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .client import IRCClient

logger = logging.getLogger(__name__)


class IRCBot(ABC):
    """Receives the events dispatched by an ``IRCClient``."""

    def __init__(self, irc_client: "IRCClient"):
        self.irc_client = irc_client

    @abstractmethod
    async def public_message(self, sender: str, channel: str, message: str) -> None:
        """Handle a message sent to ``channel`` (name without ``#``)."""
        pass

    @abstractmethod
    async def private_message(self, sender: str, message: str) -> None:
        """Handle a message sent directly to the bot."""
        pass

    async def join(self, nick: str, channel: str) -> None:
        logger.debug("%s joined #%s", nick, channel)

    async def part(self, nick: str, channel: str) -> None:
        logger.debug("%s left #%s", nick, channel)

    async def send_public_message(self, channel: str, message: str) -> None:
        await self.irc_client.send(message, channel)

    async def send_private_message(self, nick: str, message: str) -> None:
        await self.irc_client.send_private(message, nick)

    async def start(self) -> None:
        """Called once the client has registered with the server."""
        pass

    async def stop(self) -> None:
        pass
