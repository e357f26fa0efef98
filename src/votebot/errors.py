"""Exceptions raised by the vote mechanics and the IRC client."""


class VoteBotError(Exception):
    """Base class for all vote bot errors."""


class ClassificationError(VoteBotError, ValueError):
    """A ballot word did not match any vote kind."""

    def __init__(self, word: str):
        super().__init__(f"{word} is no valid vote")
        self.word = word


class VoteStateError(VoteBotError):
    """A vote operation was requested in the wrong state."""


class IRCClientError(VoteBotError):
    """Base class for IRC client problems."""


class InvalidNickName(IRCClientError):
    def __init__(self, nick: str):
        super().__init__(f"invalid nick name {nick}")
        self.nick = nick


class InvalidChannelName(IRCClientError):
    def __init__(self, channel: str):
        super().__init__(f"invalid channel name {channel}")
        self.channel = channel


class NoBotAssigned(IRCClientError):
    def __init__(self):
        super().__init__("no bot assigned to the IRC client")


class TransportError(IRCClientError):
    """The connection to the IRC server failed or was closed."""


class MalformedLine(IRCClientError):
    """A received line did not have the expected shape."""
