from typing import Any, Dict, Optional

from storefront.models import (
    PAYMENT_PAID,
    PAYMENT_UNPAID,
    STATUS_PROCESSING,
    Cart,
    Order,
    utcnow,
)


class OrderRepository:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_by_reference(self, reference: str) -> Optional[Order]:
        db = self.session_factory()
        try:
            return db.query(Order).filter_by(reference=reference).first()
        finally:
            db.close()

    def mark_paid(self, reference: str, payment_details: Dict[str, Any]) -> bool:
        """Flip unpaid -> paid in one conditional UPDATE; False if another request got there first."""
        db = self.session_factory()
        try:
            updated = (
                db.query(Order)
                .filter(Order.reference == reference, Order.payment_status == PAYMENT_UNPAID)
                .update(
                    {
                        Order.payment_status: PAYMENT_PAID,
                        Order.status: STATUS_PROCESSING,
                        Order.payment_details: payment_details,
                        Order.updated_at: utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            db.commit()
            return updated == 1
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def set_shopify_order_id(self, reference: str, shopify_order_id: str) -> bool:
        db = self.session_factory()
        try:
            updated = (
                db.query(Order)
                .filter(Order.reference == reference, Order.shopify_order_id.is_(None))
                .update({Order.shopify_order_id: shopify_order_id}, synchronize_session=False)
            )
            db.commit()
            return updated == 1
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class CartRepository:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def clear(self, user_id: str) -> bool:
        """Empty the user's cart, keeping the row. False when the user has no cart."""
        db = self.session_factory()
        try:
            updated = (
                db.query(Cart)
                .filter(Cart.user_id == user_id)
                .update({Cart.items: [], Cart.updated_at: utcnow()}, synchronize_session=False)
            )
            db.commit()
            return updated > 0
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
