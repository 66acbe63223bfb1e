"""Errors surfaced by carrier gateways and carrier configuration."""


class LabelIssuanceFailed(Exception):
    """A carrier automation failed; the stage error is kept as ``__cause__``."""

    def __init__(self, carrier: str, message: str):
        super().__init__(message)
        self.carrier = carrier


class CarrierNotConfigured(Exception):
    """Required carrier settings are missing or malformed."""
