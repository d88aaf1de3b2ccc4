"""
Domain exceptions raised by the settlement engine.

Each exception carries a stable ``code`` and the HTTP status the API layer
renders it with, so clients can tell "not allowed", "does not exist",
"nothing to do" and "try again later" apart.
"""
from starlette import status


class SettlementEngineError(Exception):
    """Base class for all engine errors."""
    code = "engine_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Settlement engine error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDeniedError(SettlementEngineError):
    """Requester is not a member of the travel (or not allowed to act)."""
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied to this travel"


class NotFoundError(SettlementEngineError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InvalidOperationError(SettlementEngineError):
    code = "invalid_operation"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid operation"


class NothingToSettleError(InvalidOperationError):
    """Balances are already settled; there is no plan to persist."""
    code = "nothing_to_settle"
    default_message = "Nothing to settle"


class ServiceUnavailableError(SettlementEngineError):
    """An upstream dependency (exchange rates, database) is unavailable."""
    code = "service_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable"


class TransactionError(SettlementEngineError):
    """A database transaction failed and was rolled back."""
    code = "transaction_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Transaction failed and was rolled back"
