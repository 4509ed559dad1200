from typing import Any


class AppException(Exception):
    """
    Error the API reports to the client as an error envelope.

    `details` may carry a "field" entry naming the offending input field.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """An order, invoice, party or user that does not exist (404)."""

    def __init__(self, resource: str, identifier: Any = None, field: str = "id"):
        if identifier is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} with {field}={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Input that parses but breaks a business rule (422)."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message, status_code=422, details={"field": field} if field else None
        )


class AuthenticationError(AppException):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class AuthorizationError(AppException):
    """Authenticated, but the role does not allow the action (403)."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message=message, status_code=403)


class DuplicateError(AppException):
    """A PO number, invoice number or user email already in use (409)."""

    def __init__(self, resource: str, field: str, value: Any):
        super().__init__(
            message=f"{resource} with {field}={value} already exists",
            status_code=409,
            details={"field": field, "value": value},
        )
