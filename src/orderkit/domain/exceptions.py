"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so callers (the CLI, a UI layer) can catch them uniformly and decide how
to present them.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidQuantityError(ValidationError):
    """A line quantity below 1 was requested."""


class InvalidProductError(ValidationError):
    """A product reference is missing its id or merchant."""


class InvalidRecurrenceError(ValidationError):
    """A recurrence rule is malformed (bad time, no weekdays, zero interval)."""


class EmptyCartError(ValidationError):
    """An operation that needs items was attempted on an empty cart."""


class EntityNotFoundError(DomainException):
    """A requested cart line or recurring definition does not exist."""


class PersistenceError(DomainException):
    """The key-value store rejected a read or write, or held unreadable data."""
