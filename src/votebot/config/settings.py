"""Configuration settings using Pydantic."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IRCSettings(BaseSettings):
    """IRC server connection."""
    model_config = SettingsConfigDict(env_prefix="IRC_")

    host: str = ""
    port: int = Field(default=7000, ge=1, le=65535)
    nick: str = ""
    use_tls: bool = True
    realname: str = "CAcert VoteBot"
    register_timeout_seconds: float = 60.0


class VoteBotSettings(BaseSettings):
    """Channels and deadlines of the conductor."""
    model_config = SettingsConfigDict(env_prefix="VOTEBOT_")

    meeting_channel: str = "meeting"
    vote_channel: str = "vote"
    warn_seconds: int = Field(default=90, ge=0)
    timeout_seconds: int = Field(default=120, ge=0)
    poll_interval_seconds: float = Field(default=1.0, gt=0)


class AuditorSettings(BaseSettings):
    """Which conductor the auditor watches, and where."""
    model_config = SettingsConfigDict(env_prefix="AUDITOR_")

    target_nick: str = "VoteBot"
    observation_channel: str = "vote"


class TranscriptSettings(BaseSettings):
    """Raw line transcripts per channel."""
    model_config = SettingsConfigDict(env_prefix="TRANSCRIPT_")

    directory: str = "irc"
    enabled: bool = True


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    irc: IRCSettings = Field(default_factory=IRCSettings)
    votebot: VoteBotSettings = Field(default_factory=VoteBotSettings)
    auditor: AuditorSettings = Field(default_factory=AuditorSettings)
    transcript: TranscriptSettings = Field(default_factory=TranscriptSettings)

    locale: str = "en"
    log_level: str = "INFO"
    log_file: str = ""
