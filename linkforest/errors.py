"""Exceptions raised by the link forest engine."""

import logging

mylogger = logging.getLogger(__name__)


class LinkForestError(Exception):
    """Base exception with a message, optionally logged on creation."""
    def __init__(self, message="A link forest error occurred", log=False):
        self.message = message
        super().__init__(self.message)
        if log:
            mylogger.error(message)


class PersistenceError(LinkForestError):
    """The storage backend failed to read or write the forest."""


class CycleError(LinkForestError):
    """A folder move would make a folder its own descendant."""


class ConfigError(LinkForestError):
    """The configuration file could not be parsed or validated."""
