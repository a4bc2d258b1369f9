# tracker/errors.py


class TrackerError(Exception):
    """Base class for every error raised by the tracker."""


class StoreError(TrackerError):
    """The remote item store could not complete an operation.

    Covers network failures, rejected credentials and backend faults. The
    underlying ``requests`` exception, when there is one, is chained as
    ``__cause__``.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFound(StoreError):
    """The item targeted by an update or delete does not exist."""

    def __init__(self, item_id):
        super().__init__(f"Item {item_id!r} not found", status_code=404)
        self.item_id = item_id


class ValidationError(TrackerError):
    """Input rejected before it reached the store."""


class InvalidTransition(TrackerError):
    """A status change that the item lifecycle does not allow.

    current is None when the target is unreachable from every status.
    """

    def __init__(self, item_id, current, target):
        if current is None:
            message = f"Item {item_id!r} cannot move to {_label(target)}"
        else:
            message = (
                f"Item {item_id!r} cannot move from {_label(current)} to {_label(target)}"
            )
        super().__init__(message)
        self.item_id = item_id
        self.current = current
        self.target = target


def _label(status) -> str:
    return getattr(status, "value", status)
