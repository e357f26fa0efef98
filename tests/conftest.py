"""Shared fixtures for the vote bot tests."""

import pytest

from helpers import FakeClock
from votebot.messages import DEFAULT_LOCALE, set_locale
from votebot.state_machine import VoteMechanics


@pytest.fixture(autouse=True)
def default_locale():
    set_locale(DEFAULT_LOCALE)
    yield
    set_locale(DEFAULT_LOCALE)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mechanics(clock) -> VoteMechanics:
    return VoteMechanics(clock=clock)
