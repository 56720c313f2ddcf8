"""
Error taxonomy for the risk engine.

Only InvalidInput is meant to reach callers. ExternalServiceUnavailable is
raised inside the feed adapters and turned into a FeedError result before it
leaves them.
"""


class InvalidInput(ValueError):
    """Blank or malformed location code."""


class ExternalServiceUnavailable(Exception):
    """An external feed could not be reached or returned unusable data."""
