from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.config import Settings, load_settings
from storefront.controller import PaymentController
from storefront.database import Base, create_db_engine, create_session_factory
from storefront.exceptions import PaymentError
from storefront.fulfillment import ShopifyClient
from storefront.logging_config import configure_logging, get_logger
from storefront.paystack_service import PaystackClient
from storefront.reconciliation import OrderReconciler
from storefront.repository import CartRepository, OrderRepository
from storefront.routes import router

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, gateway=None, fulfillment=None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.debug)

    engine = create_db_engine(settings)
    Base.metadata.create_all(bind=engine)
    session_factory = create_session_factory(engine)

    if gateway is None:
        gateway = PaystackClient(settings)
    if fulfillment is None and settings.shopify_enabled:
        fulfillment = ShopifyClient(settings)
    if fulfillment is None:
        logger.info("shopify_sync_disabled")

    orders = OrderRepository(session_factory)
    reconciler = OrderReconciler(orders, CartRepository(session_factory), fulfillment)

    app = FastAPI(title="Storefront Payment Service")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.controller = PaymentController(settings, gateway, orders, reconciler)

    @app.exception_handler(PaymentError)
    async def payment_error_handler(request: Request, exc: PaymentError):
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, message=exc.message, error=exc.detail)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Invalid request", "error": str(exc.errors())},
        )

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(router)
    return app


app = create_app()
