"""
mock_backend.py — Mock Implementation of the Hosted Backend (REST + RPC + Auth)

This module provides a simulated Supabase-style backend for local runs and tests.
It exposes a FastAPI application that mimics the parts of the backend the POS uses.

Simulation Scenarios:
    • Password sign-in issuing a bearer token, user lookup, logout
    • Catalog listing with `order`, `ilike` and `eq` filters (PostgREST syntax)
    • Atomic sale recording: all lines are checked against live stock first;
      only then are the header and lines stored and stock decremented
    • Stale stock (sold elsewhere in the meantime) → PostgREST-shaped error, nothing applied

Endpoints:
    POST /auth/v1/token?grant_type=password
    GET  /auth/v1/user
    POST /auth/v1/logout
    GET  /rest/v1/productos
    POST /rest/v1/rpc/registrar_venta

Port:
    Default: 8002 (HTTP)
"""

import copy
import logging
import threading
import time
import uuid
from collections import Counter
from decimal import Decimal
from typing import List, Optional

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

logging.basicConfig(level=logging.INFO)

SEED_PRODUCTS = [
    {"id": 1, "nombre": "Shampoo antipulgas", "precio": 25.00, "stock": 10, "imagen_url": None},
    {"id": 2, "nombre": "Collar reflectivo", "precio": 15.50, "stock": 4, "imagen_url": None},
    {"id": 3, "nombre": "Galletas para perro", "precio": 0.10, "stock": 200, "imagen_url": None},
    {"id": 4, "nombre": "Arena para gato", "precio": 32.90, "stock": 0, "imagen_url": None},
]

SEED_USERS = {
    "caja@veterinaria.pe": {"password": "caja1234", "id": "8d1f3c52-0000-4000-8000-000000000001"},
}


class SaleDetail(BaseModel):
    producto_id: int
    cantidad: int = Field(..., gt=0)
    precio_unitario: float


class SaleParams(BaseModel):
    """
    Parameters of the `registrar_venta` procedure.

    Attributes:
        p_total (float): Sale total.
        p_metodo_pago (str): Payment summary, e.g. "Efectivo (40.00) + Yape (25.50)".
        p_cliente_id (int | None): Optional client id.
        p_user_id (str): Operator recording the sale.
        p_detalles (List[SaleDetail]): Sold lines.
    """
    p_total: float
    p_metodo_pago: str
    p_cliente_id: Optional[int] = None
    p_user_id: str
    p_detalles: List[SaleDetail]


class BackendState:
    """In-memory tables guarded by one lock, so a sale is applied all at once."""

    def __init__(self, products=None, users=None):
        self.lock = threading.Lock()
        self.products = {p["id"]: p for p in copy.deepcopy(products or SEED_PRODUCTS)}
        self.users = dict(users or SEED_USERS)
        self.tokens = {}
        self.sales = []
        self.sale_lines = []


def _postgrest_error(status_code: int, message: str, code: str = "P0001"):
    return JSONResponse(
        status_code=status_code,
        content={"code": code, "message": message, "details": None, "hint": None},
    )


def _strip_filter(value: str, operator: str) -> str:
    return value[len(operator) + 1:] if value.startswith(operator + ".") else value


def create_app(state: BackendState = None) -> FastAPI:
    state = state or BackendState()
    app = FastAPI(title="Mock Supabase Backend")
    app.state.backend = state

    def current_user(authorization: Optional[str]):
        if not authorization or not authorization.startswith("Bearer "):
            return None
        return state.tokens.get(authorization[len("Bearer "):])

    @app.post("/auth/v1/token")
    async def token(request: Request, grant_type: str = "password"):
        body = await request.json()
        email = body.get("email", "")
        user = state.users.get(email)
        if grant_type != "password" or user is None or user["password"] != body.get("password"):
            logging.warning(f"[AUTH] Credenciales inválidas para {email}.")
            return JSONResponse(status_code=400, content={
                "error": "invalid_grant", "error_description": "Invalid login credentials"})

        access_token = uuid.uuid4().hex
        state.tokens[access_token] = {"id": user["id"], "email": email}
        logging.info(f"[AUTH] Sesión iniciada: {email}")
        return {"access_token": access_token, "token_type": "bearer", "user": state.tokens[access_token]}

    @app.get("/auth/v1/user")
    def get_user(authorization: Optional[str] = Header(None)):
        user = current_user(authorization)
        if user is None:
            return JSONResponse(status_code=401, content={"msg": "invalid JWT"})
        return user

    @app.post("/auth/v1/logout", status_code=204)
    def logout(authorization: Optional[str] = Header(None)):
        if authorization and authorization.startswith("Bearer "):
            state.tokens.pop(authorization[len("Bearer "):], None)

    @app.get("/rest/v1/productos")
    def list_products(request: Request):
        rows = list(state.products.values())
        params = request.query_params

        if "id" in params:
            wanted = _strip_filter(params["id"], "eq")
            rows = [r for r in rows if str(r["id"]) == wanted]
        if "nombre" in params:
            pattern = _strip_filter(params["nombre"], "ilike").strip("*%").lower()
            rows = [r for r in rows if pattern in r["nombre"].lower()]
        if params.get("order") == "nombre":
            rows.sort(key=lambda r: r["nombre"])
        return rows

    @app.post("/rest/v1/rpc/registrar_venta")
    def registrar_venta(params: SaleParams, authorization: Optional[str] = Header(None)):
        """
        Records a sale atomically.

        Returns:
            int: Id of the new sale.

        Errors:
            401: No valid session token.
            400 (P0001): A product is unknown or has less stock than requested;
                nothing is written.
        """
        if current_user(authorization) is None:
            return JSONResponse(status_code=401, content={"code": "PGRST301", "message": "JWT expired"})

        with state.lock:
            # Primero se valida todo, después se escribe
            requested = Counter()
            for detail in params.p_detalles:
                requested[detail.producto_id] += detail.cantidad

            for product_id, quantity in requested.items():
                product = state.products.get(product_id)
                if product is None:
                    return _postgrest_error(400, f"Producto {product_id} no existe")
                if product["stock"] < quantity:
                    logging.warning(f"[DB] Stock insuficiente para {product['nombre']}.")
                    return _postgrest_error(400, f"Stock insuficiente para {product['nombre']}")

            sale_id = len(state.sales) + 1
            state.sales.append({
                "id": sale_id,
                "total": Decimal(str(params.p_total)),
                "metodo_pago": params.p_metodo_pago,
                "cliente_id": params.p_cliente_id,
                "user_id": params.p_user_id,
                "fecha": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            })
            for detail in params.p_detalles:
                state.sale_lines.append({"venta_id": sale_id, **detail.model_dump()})
                state.products[detail.producto_id]["stock"] -= detail.cantidad

        logging.info(f"[DB] Venta {sale_id} registrada: {params.p_total} ({params.p_metodo_pago}).")
        return sale_id

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8002)
