"""
Error taxonomy for tinytask

All errors raised by the services derive from TinyTaskError so callers can
catch the whole family at once. None of them are retried internally.
"""


class TinyTaskError(Exception):
    """Base class for all tinytask errors"""
    pass


class ValidationError(TinyTaskError, ValueError):
    """
    Caller-supplied data violates a field rule

    Examples: empty title/content/url, status outside idle/working/complete,
    stored tags that are not a JSON array of strings.
    """
    pass


class NotFoundError(TinyTaskError, LookupError):
    """Operation targets an id that does not exist"""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class IntegrityError(TinyTaskError):
    """
    An invariant the core guarantees was violated

    Raised when a row that was just written cannot be read back. This points
    at adapter-level corruption or a bug, never at bad user input.
    """
    pass


class StorageError(TinyTaskError):
    """The store adapter failed to execute a statement"""
    pass


__all__ = [
    "TinyTaskError",
    "ValidationError",
    "NotFoundError",
    "IntegrityError",
    "StorageError",
]
