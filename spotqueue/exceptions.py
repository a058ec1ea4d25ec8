"""
Defines custom exceptions for the application to allow for more specific error handling.

Fatal errors abort the whole run; item-level errors only fail the queue item
they were raised for.
"""


class SpotQueueError(Exception):
    """Base exception for all application-specific errors."""


class AuthenticationError(SpotQueueError):
    """Raised when login fails due to invalid or expired credentials."""


class ConfigurationError(SpotQueueError):
    """Raised for issues related to configuration loading or validation."""


class InputStreamError(SpotQueueError):
    """Raised when the list of links cannot be read."""


class ItemUnavailableError(SpotQueueError):
    """
    Raised when metadata for a track or episode cannot be fetched, e.g. the item
    was removed or is restricted in the account's region.
    """


class AudioStreamError(SpotQueueError):
    """Raised when an audio stream cannot be opened or is interrupted."""


class CollectionLookupError(SpotQueueError):
    """Raised when the members of a playlist, album or show cannot be listed."""


class HelperProcessError(SpotQueueError):
    """Raised when the helper program cannot be started or exits with an error."""
