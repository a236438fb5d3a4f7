"""Exceptions raised by the Redshift range data source."""


class DatabaseError(Exception):
    """A statement against the configured data source failed or returned an unusable result."""


class InvalidArgumentError(ValueError):
    """A caller-supplied argument (such as the partition count) is out of range."""
