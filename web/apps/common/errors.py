"""Domain error taxonomy shared by the service layer.

Services raise these exceptions when a business rule is violated. They are
plain Python exceptions so the domain stays free of HTTP concerns; the
gateway exception handler translates each kind into a response status.
"""


class DomainError(Exception):
    """Base class for business-rule failures.

    Attributes:
        code: Stable machine-readable error code.
        detail: Human-readable message naming the offending resource.
    """

    code = "DOMAIN_ERROR"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(DomainError):
    """A referenced order, product, client or order item does not exist."""

    code = "NOT_FOUND"


class Forbidden(DomainError):
    """The principal lacks rights over the resource or action."""

    code = "FORBIDDEN"


class InvalidRequest(DomainError):
    """Semantically invalid input (bad quantity, short stock, bad status)."""

    code = "INVALID_REQUEST"


class Conflict(DomainError):
    """The request clashes with existing state (duplicates, references)."""

    code = "CONFLICT"
