"""Error taxonomy shared by the services.

Each failure path of a service raises exactly one of these. The ``kind``
attribute is what an outer transport layer maps to a status code.
"""


class BudgeteerError(Exception):
    """Base class for all errors raised by Budgeteer services."""

    kind = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BudgeteerError, ValueError):
    """Input is malformed or a required confirmation is missing or wrong."""

    kind = "VALIDATION"


class NotFoundError(BudgeteerError):
    """The addressed resource does not exist (or is not visible to the actor)."""

    kind = "NOT_FOUND"


class ConflictError(BudgeteerError):
    """A uniqueness rule would be violated."""

    kind = "CONFLICT"


class ForbiddenError(BudgeteerError):
    """The authorization policy denied the operation."""

    kind = "FORBIDDEN"


class UnauthorizedError(BudgeteerError):
    """Credentials or tokens are missing, wrong, expired or revoked."""

    kind = "UNAUTHORIZED"
