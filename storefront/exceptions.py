from typing import Optional


class PaymentError(Exception):
    """Base error for the payment endpoints, carries the HTTP status to answer with."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_body(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.detail:
            body["error"] = self.detail
        return body


class InvalidInput(PaymentError):
    status_code = 400


class InvalidAmount(InvalidInput):
    pass


class NotFound(PaymentError):
    status_code = 404


class OrderNotFound(NotFound):
    def __init__(self, reference: str):
        self.reference = reference
        super().__init__("Order not found")


class UpstreamFailure(PaymentError):
    status_code = 500


class AuthFailure(PaymentError):
    status_code = 401


class FulfillmentError(Exception):
    """Raised by the fulfillment client, never surfaced to API callers."""
