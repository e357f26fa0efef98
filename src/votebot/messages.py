"""Localized message catalog.

Templates use positional ``{0}`` placeholders and are rendered by the
caller with ``str.format``. The auditor parses the English announcements,
so a conductor audited by ``AuditorBot`` must run with the ``en`` locale.
"""

DEFAULT_LOCALE = "en"

CATALOGS: dict[str, dict[str, str]] = {
    "en": {
        "vote_started": "Vote started.",
        "vote_running": "Sorry, a vote is already running.",
        "no_vote_running": "Sorry {0}, there is no vote running.",
        "no_vote_running_private": "Sorry, there is no vote running.",
        "cannot_close_running_vote": "Cannot close a vote that is still running.",
        "count_vote": "{0}: I count {1}",
        "count_proxy_vote": "{0}: I count {2} for {1}",
        "vote_not_understood": "{0}: Sorry, I did not understand your vote.",
        "invalid_proxy_vote": "{0}: Invalid proxy vote. Use: proxy <nick> <vote>",
        "new_vote": 'New Vote: {0} has started a vote on "{1}"',
        "cast_vote_in_vote_channel": "Please cast your vote in #{0}",
        "cast_vote_in_next_seconds": "Please cast your vote in the next {0} seconds.",
        "voting_will_end_in_n_seconds": "Voting on {0} will end in {1} seconds.",
        "voting_has_closed": "Voting on {0} has closed.",
        "results_for_vote": "Results: for {0}:",
        "finishing_vote": "Finishing vote on {0} (stopped by {1}).",
        "vote_cancelled": "Vote cancelled.",
        "unknown_command": "Unknown command {0}. Send HELP for a list of commands.",
        "missing_topic": "Please give a topic for the vote: VOTE <topic>",
        "help_message": (
            "Available commands:\n"
            "VOTE <topic>  start a new vote on <topic>\n"
            "CANCEL        stop the running vote early\n"
            "HELP          show this message\n"
            "\n"
            "Ballots are cast in the vote channel: aye, naye or abstain.\n"
            "To vote for someone else: proxy <nick> <vote>"
        ),
    },
    "de": {
        "vote_started": "Abstimmung gestartet.",
        "vote_running": "Entschuldigung, es läuft bereits eine Abstimmung.",
        "no_vote_running": "Entschuldigung {0}, es läuft keine Abstimmung.",
        "no_vote_running_private": "Entschuldigung, es läuft keine Abstimmung.",
        "cannot_close_running_vote": "Eine laufende Abstimmung kann nicht geschlossen werden.",
        "count_vote": "{0}: Ich zähle {1}",
        "count_proxy_vote": "{0}: Ich zähle {2} für {1}",
        "vote_not_understood": "{0}: Entschuldigung, deine Stimme habe ich nicht verstanden.",
        "invalid_proxy_vote": "{0}: Ungültige Stellvertreterstimme. Format: proxy <nick> <stimme>",
        "cast_vote_in_vote_channel": "Bitte stimmt in #{0} ab",
        "cast_vote_in_next_seconds": "Bitte gebt eure Stimme in den nächsten {0} Sekunden ab.",
        "vote_cancelled": "Abstimmung abgebrochen.",
        "unknown_command": "Unbekannter Befehl {0}. HELP listet alle Befehle.",
        "missing_topic": "Bitte gib ein Thema an: VOTE <thema>",
        "help_message": (
            "Befehle:\n"
            "VOTE <thema>  startet eine Abstimmung über <thema>\n"
            "CANCEL        beendet die laufende Abstimmung vorzeitig\n"
            "HELP          zeigt diese Hilfe\n"
            "\n"
            "Abgestimmt wird im Abstimmungskanal: ja, nein oder enthaltung.\n"
            "Für jemand anderen: proxy <nick> <stimme>"
        ),
    },
}

_locale = DEFAULT_LOCALE


def available_locales() -> list[str]:
    return sorted(CATALOGS)


def set_locale(locale: str) -> None:
    """Select the catalog used by ``t``."""
    global _locale
    if locale not in CATALOGS:
        raise ValueError(f"unsupported locale {locale!r}, choose from {available_locales()}")
    _locale = locale


def get_locale() -> str:
    return _locale


def t(key: str) -> str:
    """Look up a message template, falling back to English."""
    catalog = CATALOGS[_locale]
    if key in catalog:
        return catalog[key]
    return CATALOGS[DEFAULT_LOCALE][key]
