"""Exceptions raised by mailbox sessions and the cleanup workflow."""


class CleanupError(Exception):
    """Base class for every failure the cleanup can report."""


class ConnectError(CleanupError):
    """The server could not be reached."""


class AuthenticationError(CleanupError):
    """The server rejected the login."""


class MailboxError(CleanupError):
    """The mailbox does not exist or could not be selected."""


class QueryError(CleanupError):
    """The SEARCH command failed."""


class FetchError(CleanupError):
    """Metadata for a range of messages could not be fetched."""


class DeleteError(CleanupError):
    """Marking messages as deleted, or expunging them, failed."""
