from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from storefront.config import Settings
from storefront.exceptions import UpstreamFailure
from storefront.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Authorization:
    auth_code: Optional[str] = None
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> Optional["Authorization"]:
        if not payload:
            return None
        return cls(
            auth_code=payload.get("authorization_code"),
            card_last4=payload.get("last4"),
            card_brand=payload.get("card_type"),
        )


@dataclass(frozen=True)
class PaymentVerified:
    reference: str
    amount: int  # kobo
    currency: str
    channel: Optional[str]
    transaction_id: Optional[int]
    authorization: Optional[Authorization] = None


@dataclass(frozen=True)
class PaymentDeclined:
    reference: Optional[str]
    status: str
    message: Optional[str] = None


@dataclass(frozen=True)
class VerificationError:
    reference: str
    error: str


VerificationResult = Union[PaymentVerified, PaymentDeclined, VerificationError]


def parse_transaction(data: Dict[str, Any]) -> Union[PaymentVerified, PaymentDeclined]:
    """Map a Paystack transaction object (verify response or webhook data)."""
    if not isinstance(data, dict):
        raise ValueError("transaction payload must be an object")

    status = data.get("status") or "unknown"
    if status != "success":
        return PaymentDeclined(
            reference=data.get("reference"),
            status=status,
            message=data.get("gateway_response"),
        )

    try:
        reference = data["reference"]
        amount = int(data["amount"])
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"malformed successful transaction: {exc}")

    return PaymentVerified(
        reference=reference,
        amount=amount,
        currency=data.get("currency") or "NGN",
        channel=data.get("channel"),
        transaction_id=data.get("id"),
        authorization=Authorization.from_payload(data.get("authorization")),
    )


class PaystackClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self._client = httpx.Client(
            base_url=settings.paystack_base_url,
            headers={
                "Authorization": f"Bearer {settings.paystack_secret_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("paystack_request_failed", method=method, path=path, error=str(exc))
            raise UpstreamFailure("Paystack request failed", detail=str(exc))

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error or not body.get("status"):
            message = body.get("message") or f"Paystack responded with {response.status_code}"
            logger.warning("paystack_error_response", path=path, status_code=response.status_code, message=message)
            raise UpstreamFailure(message)

        return body

    def initialize_transaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = self._request("POST", "/transaction/initialize", json=payload)
        return body.get("data") or {}

    def verify_transaction(self, reference: str) -> VerificationResult:
        try:
            body = self._request("GET", f"/transaction/verify/{reference}")
            return parse_transaction(body.get("data"))
        except UpstreamFailure as exc:
            return VerificationError(reference=reference, error=exc.message)
        except ValueError as exc:
            return VerificationError(reference=reference, error=str(exc))

    def list_banks(self) -> List[Dict[str, Any]]:
        body = self._request("GET", "/bank")
        return body.get("data") or []
