"""Error taxonomy shared by the policy evaluator, the hook engine and services.

Every error carries an HTTP status code and a client-safe ``to_dict``.
Only ``ValidationFailed`` tells the client *what* was wrong; the others are
deliberately generic.
"""


class MarketplaceError(Exception):
    status_code = 400
    message = "Request failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {"error": self.message}


class AuthorizationDenied(MarketplaceError):
    status_code = 403
    message = "Permission denied"

    def __init__(self, message: str = None):
        # The public message never names the policy that rejected the request
        super().__init__(self.message)
        self.reason = message


class ValidationFailed(MarketplaceError):
    status_code = 400
    message = "Validation error"

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def to_dict(self):
        return {"error": "Validation error", "messages": {self.field: [self.reason]}}


class IntegrityConflict(MarketplaceError):
    status_code = 409
    message = "Conflict"


class NotFound(MarketplaceError):
    status_code = 404
    message = "Resource not found"


class EmailNotVerified(MarketplaceError):
    status_code = 403
    message = "Email address not verified"
