"""Order-level errors, built on protean's exception hierarchy.

Validation problems are ValidationError subclasses so API layers map them to
client errors; a missing order is an ObjectNotFoundError.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class MalformedInput(ValidationError):
    """The payload could not be parsed, or required fields are missing or mistyped."""


class InvalidStatus(ValidationError):
    """The requested status is not a member of OrderStatus."""


class InvalidTransition(ValidationError):
    """The configured transition graph does not allow the requested move."""


class OrderNotFound(ObjectNotFoundError):
    """No order is stored under the requested id."""


class OrderAlreadyExists(InvalidOperationError):
    """Creation was rejected because the order id is already in use."""
