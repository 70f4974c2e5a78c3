from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from storefront.auth import verify_token
from storefront.controller import InitializePaymentRequest, PaymentController

router = APIRouter(prefix="/api/payment", tags=["payment"])


def get_controller(request: Request) -> PaymentController:
    return request.app.state.controller


@router.post("/initialize")
def initialize_payment(
    payload: InitializePaymentRequest,
    controller: PaymentController = Depends(get_controller),
    auth=Depends(verify_token)
):
    return controller.initialize_payment(payload)


@router.get("/verify/{reference}")
def verify_payment(reference: str, controller: PaymentController = Depends(get_controller)):
    status_code, body = controller.verify_payment(reference)
    return JSONResponse(status_code=status_code, content=body)


@router.get("/callback")
def payment_callback(
    reference: Optional[str] = None,
    trxref: Optional[str] = None,
    controller: PaymentController = Depends(get_controller)
):
    return RedirectResponse(controller.handle_callback(reference, trxref), status_code=302)


@router.post("/webhook")
async def paystack_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(None),
    controller: PaymentController = Depends(get_controller)
):
    payload = await request.body()
    status_code, message = controller.handle_webhook(payload, x_paystack_signature)
    return PlainTextResponse(message, status_code=status_code)


@router.get("/banks")
def get_banks(controller: PaymentController = Depends(get_controller)):
    return controller.get_banks()


@router.get("/fee")
def payment_fee(
    amount: str = Query(...),
    method: str = Query("card"),
    controller: PaymentController = Depends(get_controller)
):
    return controller.estimate_fee(amount, method)
