from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from storefront.amounts import to_major_units
from storefront.exceptions import OrderNotFound
from storefront.logging_config import get_logger
from storefront.models import PAYMENT_PAID, Order
from storefront.paystack_service import PaymentVerified
from storefront.repository import CartRepository, OrderRepository

logger = get_logger(__name__)

EFFECT_SHOPIFY_ORDER = "shopify_order"
EFFECT_CLEAR_CART = "clear_cart"


@dataclass(frozen=True)
class EffectResult:
    name: str
    ok: bool
    skipped: bool = False
    error: Optional[str] = None

    @classmethod
    def success(cls, name: str) -> "EffectResult":
        return cls(name=name, ok=True)

    @classmethod
    def skip(cls, name: str) -> "EffectResult":
        return cls(name=name, ok=True, skipped=True)

    @classmethod
    def failure(cls, name: str, error: str) -> "EffectResult":
        return cls(name=name, ok=False, error=error)


@dataclass
class ReconcileOutcome:
    order: Order
    transitioned: bool
    effects: List[EffectResult] = field(default_factory=list)


def build_payment_details(verified: PaymentVerified) -> Dict[str, Any]:
    auth = verified.authorization
    return {
        "reference": verified.reference,
        "amount": to_major_units(verified.amount),
        "currency": verified.currency,
        "channel": verified.channel,
        "paid_at": datetime.now(timezone.utc).isoformat(),
        "transaction_id": verified.transaction_id,
        "auth_code": auth.auth_code if auth else None,
        "card_last4": auth.card_last4 if auth else None,
        "card_brand": auth.card_brand if auth else None,
    }


class OrderReconciler:
    def __init__(self, orders: OrderRepository, carts: CartRepository, fulfillment=None):
        self.orders = orders
        self.carts = carts
        self.fulfillment = fulfillment

    def reconcile(self, reference: str, verified: PaymentVerified) -> ReconcileOutcome:
        order = self.orders.get_by_reference(reference)
        if order is None:
            raise OrderNotFound(reference)

        if order.payment_status == PAYMENT_PAID:
            logger.info("order_already_paid", reference=reference)
            return ReconcileOutcome(order=order, transitioned=False)

        if not self.orders.mark_paid(reference, build_payment_details(verified)):
            # a concurrent callback or webhook completed the transition
            logger.info("order_paid_concurrently", reference=reference)
            return ReconcileOutcome(order=self.orders.get_by_reference(reference) or order, transitioned=False)

        order = self.orders.get_by_reference(reference) or order
        logger.info("order_paid", reference=reference, order_id=order.id, amount=verified.amount)

        effects = [self._create_shopify_order(order), self._clear_cart(order)]
        for effect in effects:
            if not effect.ok:
                logger.warning("side_effect_failed", reference=reference, effect=effect.name, error=effect.error)

        return ReconcileOutcome(order=order, transitioned=True, effects=effects)

    def _create_shopify_order(self, order: Order) -> EffectResult:
        if self.fulfillment is None or order.shopify_order_id:
            return EffectResult.skip(EFFECT_SHOPIFY_ORDER)
        try:
            shopify_id = self.fulfillment.create_order(order)
            self.orders.set_shopify_order_id(order.reference, shopify_id)
        except Exception as exc:
            return EffectResult.failure(EFFECT_SHOPIFY_ORDER, f"{type(exc).__name__}: {exc}")
        order.shopify_order_id = shopify_id
        return EffectResult.success(EFFECT_SHOPIFY_ORDER)

    def _clear_cart(self, order: Order) -> EffectResult:
        if not order.user_id:
            return EffectResult.skip(EFFECT_CLEAR_CART)
        try:
            self.carts.clear(order.user_id)
        except Exception as exc:
            return EffectResult.failure(EFFECT_CLEAR_CART, f"{type(exc).__name__}: {exc}")
        return EffectResult.success(EFFECT_CLEAR_CART)
