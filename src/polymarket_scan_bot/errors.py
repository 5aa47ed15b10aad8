from __future__ import annotations


class ScanBotError(Exception):
    """Base class for errors raised by the scan bot."""


class TransportError(ScanBotError):
    """A network call to the trade feed or the messaging sink failed."""


class MalformedDataError(ScanBotError):
    """A feed record is missing a required field or has a non-numeric value."""


class ConfigurationError(ScanBotError):
    """A required setting (e.g. Telegram credentials) is missing."""
