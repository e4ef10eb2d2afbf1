"""Form model exceptions.

Every exception here signals programmer or configuration misuse. Invalid user
input is never raised; it is reported through ``Control.get_errors()``.
"""


class FormSyncError(Exception):
    """Base class for structural and configuration errors."""


class NonObjectInsert(FormSyncError):
    """Raised when a primitive value is inserted into a Registry."""


class NoIdKey(FormSyncError):
    """Raised when mapping data is ingested by a Registry without an id key."""


class MemberMethodNotImplemented(FormSyncError):
    """Raised when an ingest callback uses a method a member does not provide."""

    def __init__(self, method_name: str):
        self.method_name = method_name
        super().__init__(f"[Registry] Member does not implement method \"{method_name}\"")


class AmbiguousParent(FormSyncError):
    """Raised when more than one enclosing node is offered as a mount parent."""


class ShapeMismatch(FormSyncError):
    """Raised when data does not have the shape its receiver expects."""


class InvalidConfiguration(FormSyncError):
    """Raised for malformed control or form configuration."""


class SubmitInProgress(FormSyncError):
    """Raised when a form is submitted while a previous submit is running."""
