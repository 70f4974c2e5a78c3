import json
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError

from storefront.amounts import calculate_payment_fee, normalize_amount, parse_amount
from storefront.config import Settings
from storefront.exceptions import InvalidInput, OrderNotFound, UpstreamFailure
from storefront.logging_config import get_logger
from storefront.models import PAYMENT_PAID
from storefront.paystack_service import PaymentDeclined, PaymentVerified, VerificationError, parse_transaction
from storefront.reconciliation import OrderReconciler
from storefront.references import generate_reference
from storefront.repository import OrderRepository
from storefront.webhooks import verify_signature

logger = get_logger(__name__)

CHARGE_SUCCESS = "charge.success"

WEBHOOK_RECEIVED = "Webhook received"
WEBHOOK_PROCESSED = "Webhook processed"
INVALID_SIGNATURE = "Invalid signature"


class InitializePaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    amount: Any = None
    reference: Optional[str] = None
    order_id: Optional[str] = Field(default=None, alias="orderId")
    amount_unit: Optional[str] = Field(default=None, alias="amountUnit")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PaymentController:
    def __init__(self, settings: Settings, gateway, orders: OrderRepository, reconciler: OrderReconciler):
        self.settings = settings
        self.gateway = gateway
        self.orders = orders
        self.reconciler = reconciler

    # -- initialize ------------------------------------------------------

    def initialize_payment(self, request: InitializePaymentRequest) -> dict:
        if not request.email or request.amount in (None, "", 0) or not request.order_id:
            raise InvalidInput("Missing required fields: email, amount, orderId")

        kobo = normalize_amount(request.amount, unit=request.amount_unit, threshold=self.settings.kobo_threshold)
        reference = request.reference or generate_reference(compact=True)

        payload = {
            "email": request.email,
            "amount": kobo,
            "reference": reference,
            "metadata": {"order_id": request.order_id, **request.metadata},
            "callback_url": self.settings.paystack_callback_url,
            "channels": list(self.settings.payment_channels),
        }
        logger.info("payment_initializing", reference=reference, kobo=kobo, order_id=request.order_id)

        try:
            data = self.gateway.initialize_transaction(payload)
        except UpstreamFailure as exc:
            raise UpstreamFailure("Payment initialization failed", detail=exc.message)

        return {
            "success": True,
            "data": {
                "authorizationUrl": data.get("authorization_url"),
                "accessCode": data.get("access_code"),
                "reference": data.get("reference", reference),
            },
        }

    # -- verify ----------------------------------------------------------

    def verify_payment(self, reference: str) -> Tuple[int, dict]:
        try:
            return self._verify_payment(reference)
        except SQLAlchemyError as exc:
            raise UpstreamFailure("Payment verification failed", detail=str(exc))

    def _verify_payment(self, reference: str) -> Tuple[int, dict]:
        order = self.orders.get_by_reference(reference)
        if order is None:
            raise OrderNotFound(reference)

        if order.payment_status != PAYMENT_PAID:
            result = self.gateway.verify_transaction(reference)
            if isinstance(result, VerificationError):
                raise UpstreamFailure("Payment verification failed", detail=result.error)
            if isinstance(result, PaymentDeclined):
                logger.info("payment_declined", reference=reference, status=result.status)
                return 400, {
                    "success": False,
                    "status": "failed",
                    "message": "Payment verification failed",
                }
            order = self.reconciler.reconcile(reference, result).order

        return 200, {
            "success": True,
            "status": "success",
            "message": "Payment verified successfully",
            "order": {"id": order.id, "reference": order.reference, "status": order.status},
        }

    # -- browser callback ------------------------------------------------

    def _frontend(self, path: str, **query) -> str:
        url = f"{self.settings.frontend_url.rstrip('/')}{path}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    def handle_callback(self, reference: Optional[str], trxref: Optional[str] = None) -> str:
        """Return the frontend URL the browser should be redirected to."""
        logger.info("payment_callback", reference=reference, trxref=trxref)
        if not reference:
            return self._frontend("/payment-failed")

        try:
            order = self.orders.get_by_reference(reference)
            if order is None:
                logger.error("callback_order_not_found", reference=reference)
                return self._frontend("/payment-failed")

            if order.payment_status == PAYMENT_PAID:
                return self._frontend(f"/order-details/{order.id}")

            result = self.gateway.verify_transaction(reference)
            if not isinstance(result, PaymentVerified):
                logger.warning("callback_payment_unsuccessful", reference=reference, result=repr(result))
                return self._frontend("/payment-failed", reference=reference)

            self.reconciler.reconcile(reference, result)
            return self._frontend("/user-account", tab="orders", success="true", order=reference)
        except Exception:
            logger.exception("callback_failed", reference=reference)
            return self._frontend("/payment-failed")

    # -- webhook ---------------------------------------------------------

    def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> Tuple[int, str]:
        if not verify_signature(raw_body, signature, self.settings.webhook_secret):
            logger.warning("webhook_rejected", reason="signature_mismatch")
            return 401, INVALID_SIGNATURE

        # past this point the provider always gets a 200 so it does not retry
        try:
            payload = json.loads(raw_body)
            event = payload.get("event")
            if event != CHARGE_SUCCESS:
                logger.info("webhook_ignored", event_type=event)
                return 200, WEBHOOK_RECEIVED

            result = parse_transaction(payload.get("data"))
            if not isinstance(result, PaymentVerified):
                logger.info("webhook_charge_not_successful", reference=result.reference, status=result.status)
                return 200, WEBHOOK_RECEIVED

            self.reconciler.reconcile(result.reference, result)
        except OrderNotFound as exc:
            logger.warning("webhook_order_not_found", reference=exc.reference)
        except Exception:
            logger.exception("webhook_processing_failed")
            return 200, WEBHOOK_PROCESSED

        return 200, WEBHOOK_RECEIVED

    # -- misc ------------------------------------------------------------

    def get_banks(self) -> dict:
        try:
            banks = self.gateway.list_banks()
        except UpstreamFailure as exc:
            raise UpstreamFailure("Failed to fetch banks", detail=exc.message)
        return {"success": True, "data": banks}

    def estimate_fee(self, amount: str, method: str = "card") -> dict:
        value = parse_amount(amount)
        return {
            "success": True,
            "data": {"amount": value, "method": method, "fee": calculate_payment_fee(value, method)},
        }
