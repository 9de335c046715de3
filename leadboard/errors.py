"""Exception types raised by the gateways and the sync engine.

PreconditionError subclasses ValueError so callers that already catch
ValueError from the service layer keep working.
"""


class LeadboardError(Exception):
    """Base class for every error this package raises on purpose."""


class PreconditionError(LeadboardError, ValueError):
    """The intent is invalid. Raised before any local or remote change."""


class NotFoundError(PreconditionError):
    """A lead or stage id is not present in the working copy."""


class RemoteStoreError(LeadboardError):
    """A call to the remote store failed (network, HTTP or database error)."""
