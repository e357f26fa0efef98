"""Command line flags for the conductor and auditor entry points."""

import argparse
from typing import Optional, Sequence

from .config.settings import Settings

PLAIN_PORT = 6667


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value} is negative")
    return number


def _base_parser(prog: str, description: str) -> argparse.ArgumentParser:
    # -h is the host flag, so help is only available as --help
    parser = argparse.ArgumentParser(prog=prog, description=description, add_help=False)
    parser.add_argument("--help", action="help", help="show this help message and exit")
    parser.add_argument("-h", "--host", help="hostname of the IRC server")
    parser.add_argument("-p", "--port", type=int, help="tcp port of the IRC server (default 7000)")
    parser.add_argument("-n", "--nick", help="IRC nick name")
    parser.add_argument("-u", "--no-ssl", action="store_true", help="disable SSL")
    return parser


def conductor_parser() -> argparse.ArgumentParser:
    parser = _base_parser("votebot", "Conduct votes in an IRC channel.")
    parser.add_argument("--meeting", help="channel for announcements (default meeting)")
    parser.add_argument("--vote", help="channel where ballots are cast (default vote)")
    parser.add_argument("--warn", type=_non_negative_int, help="seconds until the closing warning")
    parser.add_argument("--timeout", type=_non_negative_int, help="seconds until the vote closes")
    return parser


def auditor_parser() -> argparse.ArgumentParser:
    parser = _base_parser("voteauditor", "Audit the results published by a vote bot.")
    parser.add_argument("--target", help="nick of the vote bot to audit")
    parser.add_argument("--channel", help="channel to observe (default vote)")
    return parser


def _apply_irc_args(
    settings: Settings, args: argparse.Namespace, parser: argparse.ArgumentParser
) -> Settings:
    host = args.host or settings.irc.host
    nick = args.nick or settings.irc.nick
    missing = [flag for flag, value in (("-h/--host", host), ("-n/--nick", nick)) if not value]
    if missing:
        parser.error(f"the following arguments are required: {', '.join(missing)}")

    use_tls = settings.irc.use_tls and not args.no_ssl
    if args.port is not None:
        port = args.port
    elif not use_tls and "port" not in settings.irc.model_fields_set:
        port = PLAIN_PORT
    else:
        port = settings.irc.port

    irc = settings.irc.model_copy(
        update={"host": host, "nick": nick, "port": port, "use_tls": use_tls}
    )
    return settings.model_copy(update={"irc": irc})


def _overrides(**values) -> dict:
    return {key: value for key, value in values.items() if value is not None}


def parse_conductor_args(settings: Settings, argv: Optional[Sequence[str]] = None) -> Settings:
    """Merge the conductor's command line into ``settings``."""
    parser = conductor_parser()
    args = parser.parse_args(argv)
    settings = _apply_irc_args(settings, args, parser)
    votebot = settings.votebot.model_copy(
        update=_overrides(
            meeting_channel=args.meeting,
            vote_channel=args.vote,
            warn_seconds=args.warn,
            timeout_seconds=args.timeout,
        )
    )
    return settings.model_copy(update={"votebot": votebot})


def parse_auditor_args(settings: Settings, argv: Optional[Sequence[str]] = None) -> Settings:
    """Merge the auditor's command line into ``settings``."""
    parser = auditor_parser()
    args = parser.parse_args(argv)
    settings = _apply_irc_args(settings, args, parser)
    auditor = settings.auditor.model_copy(
        update=_overrides(target_nick=args.target, observation_channel=args.channel)
    )
    return settings.model_copy(update={"auditor": auditor})
