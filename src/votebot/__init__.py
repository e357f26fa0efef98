"""IRC vote conductor and auditor bots."""

__version__ = "0.3.0"
