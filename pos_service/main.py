"""
main.py — FastAPI Entry Point for the POS Service

This module provides the REST API the point-of-sale screen talks to. It owns a
single POS session (cart + payment split + checkout) and forwards catalog,
auth and sale calls to the hosted backend.

Responsibilities:
    • Catalog lookup and cart editing with stock limits
    • Payment split across several methods
    • Atomic checkout through the backend's sale procedure
    • Translating domain errors into HTTP responses
    • Provide system health information
"""

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .clients import BackendClient, error_message
from .errors import ExternalWriteFailure, PosError
from .logging_config import get_logger, setup_logging
from .models import (
    AddItemRequest,
    ChangeQuantityRequest,
    CheckoutOutcome,
    CheckoutRequest,
    PaymentMethod,
    SetAmountRequest,
    SignInRequest,
)
from .session import PosSession

# Initialization
setup_logging()
log = get_logger(__name__)
app = FastAPI(title="Caja Veterinaria POS")


@app.on_event("startup")
def on_startup():
    """
    Creates the backend client and the POS session for this process.
    A session already placed on `app.state` (e.g. by a test harness) is kept.
    """
    log.info("POS Service iniciando...")
    if getattr(app.state, "session", None) is None:
        app.state.session = PosSession(BackendClient())
    log.info("Sesión de caja lista.")


@app.on_event("shutdown")
async def on_shutdown():
    session = getattr(app.state, "session", None)
    if session is not None:
        await session.client.aclose()
    log.info("POS Service detenido.")


def get_session(request: Request) -> PosSession:
    return request.app.state.session


# --- Error handling ---

@app.exception_handler(ExternalWriteFailure)
async def external_write_failure_handler(request: Request, exc: ExternalWriteFailure):
    return JSONResponse(
        status_code=exc.status_code,
        content=CheckoutOutcome(success=False, message=exc.detail).model_dump(mode="json", exclude_none=True),
    )


@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(httpx.HTTPError)
async def backend_error_handler(request: Request, exc: httpx.HTTPError):
    if isinstance(exc, httpx.HTTPStatusError):
        detail = error_message(exc.response)
    else:
        detail = str(exc) or "No se pudo conectar con el servidor."
    log.error(f"Error del backend en {request.method} {request.url.path}: {detail}")
    return JSONResponse(status_code=502, content={"code": "backend_error", "detail": detail})


# --- Session ---

@app.post("/v1/session")
async def sign_in(credentials: SignInRequest, session: PosSession = Depends(get_session)):
    try:
        user = await session.client.sign_in(credentials.email, credentials.password)
    except httpx.HTTPStatusError as e:
        if e.response.status_code in (400, 401):
            raise HTTPException(status_code=401, detail=error_message(e.response))
        raise
    return {"user_id": user.get("id"), "email": user.get("email")}


@app.delete("/v1/session", status_code=204)
async def sign_out(session: PosSession = Depends(get_session)):
    await session.client.sign_out()


# --- Catalog & cart ---

@app.get("/v1/products")
async def list_products(search: str = "", session: PosSession = Depends(get_session)):
    products = await session.search_products(search)
    return [product.model_dump(mode="json") for product in products]


@app.get("/v1/cart")
def get_cart(session: PosSession = Depends(get_session)):
    return session.snapshot()


@app.post("/v1/cart/items")
async def add_item(body: AddItemRequest, session: PosSession = Depends(get_session)):
    await session.add_product(body.product_id)
    return session.snapshot()


@app.patch("/v1/cart/items/{product_id}")
def change_item_quantity(product_id: int, body: ChangeQuantityRequest,
                         session: PosSession = Depends(get_session)):
    session.change_quantity(product_id, body.delta)
    return session.snapshot()


@app.delete("/v1/cart/items/{product_id}")
def remove_item(product_id: int, session: PosSession = Depends(get_session)):
    session.remove_product(product_id)
    return session.snapshot()


# --- Payments ---

@app.post("/v1/payments/{method}/toggle")
def toggle_payment_method(method: PaymentMethod, session: PosSession = Depends(get_session)):
    session.toggle_method(method)
    return session.snapshot()


@app.put("/v1/payments/{method}")
def set_payment_amount(method: PaymentMethod, body: SetAmountRequest,
                       session: PosSession = Depends(get_session)):
    session.set_amount(method, body.amount)
    return session.snapshot()


# --- Checkout ---

@app.post("/v1/checkout")
async def checkout(body: CheckoutRequest = None, session: PosSession = Depends(get_session)):
    """
    Records the current cart as a sale.

    Returns:
        dict: `{success: true, message, total, payment_summary}` on success.
        Local validation errors answer 409 with the error code; a failed
        backend write answers 502 with `{success: false, message}`.
    """
    customer_id = body.customer_id if body else None
    outcome = await session.checkout(customer_id=customer_id)
    return outcome.model_dump(mode="json")


@app.get("/health")
def health_check():
    """
    Simple health check endpoint.

    Returns:
        dict: A basic JSON object indicating service availability.
    """
    return {"status": "ok"}
