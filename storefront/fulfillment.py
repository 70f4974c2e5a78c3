"""Shopify Admin REST adapter: mirrors a paid local order into the store."""
from typing import Any, Dict, Optional

import httpx

from storefront.config import Settings
from storefront.exceptions import FulfillmentError
from storefront.logging_config import get_logger
from storefront.models import Order

logger = get_logger(__name__)


def build_order_payload(order: Order) -> Dict[str, Any]:
    details = order.payment_details or {}
    line_items = []
    for item in order.items or []:
        line = {"quantity": int(item.get("quantity", 1))}
        if item.get("variant_id"):
            line["variant_id"] = item["variant_id"]
        else:
            line["title"] = item.get("title", "Item")
            line["price"] = str(item.get("price", 0))
        line_items.append(line)

    return {
        "order": {
            "email": order.email,
            "line_items": line_items,
            "financial_status": "paid",
            "currency": details.get("currency", "NGN"),
            "note": f"Paystack reference {order.reference}",
            "tags": "paystack",
            "transactions": [{
                "kind": "sale",
                "status": "success",
                "amount": str(details.get("amount", order.total_amount)),
                "gateway": "paystack",
                "authorization": details.get("reference", order.reference),
            }],
        }
    }


class ShopifyClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.api_version = settings.shopify_api_version
        self._client = httpx.Client(
            base_url=f"https://{settings.shopify_store_domain}",
            headers={
                "X-Shopify-Access-Token": settings.shopify_admin_token or "",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    def close(self):
        self._client.close()

    def create_order(self, order: Order) -> str:
        path = f"/admin/api/{self.api_version}/orders.json"
        try:
            response = self._client.post(path, json=build_order_payload(order))
            response.raise_for_status()
            shopify_id = response.json()["order"]["id"]
        except httpx.HTTPError as exc:
            raise FulfillmentError(f"Shopify order creation failed: {exc}")
        except (ValueError, KeyError, TypeError) as exc:
            raise FulfillmentError(f"Unexpected Shopify response: {exc}")

        logger.info("shopify_order_created", reference=order.reference, shopify_order_id=shopify_id)
        return str(shopify_id)
