"""
This module provides the communication client for the hosted backend used by the POS:
- Authentication service (GoTrue REST API under /auth/v1)
- Relational store with auto-generated REST access (PostgREST under /rest/v1)
- Remote procedures of that store (/rest/v1/rpc), among them the atomic sale call
The class encapsulates the protocol details, error logging, and connection management.
"""

import logging
from typing import List, Optional

import httpx

from .config import (
    HTTP_READ_TIMEOUT,
    HTTP_TIMEOUT,
    PRODUCTS_TABLE,
    SALE_RPC_NAME,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
)
from .models import Product, SaleRequest

log = logging.getLogger(__name__)


def error_message(response: httpx.Response) -> str:
    """
    Extracts the human-readable error message from a backend error response.

    PostgREST answers with {"message", "code", "details", "hint"}; the auth
    service uses "msg", "error_description" or "error". Anything else falls
    back to the HTTP status line.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


class BackendClient:
    """
    Async client for the hosted backend (REST + RPC + auth).
    Keeps the operator's access token after sign-in and sends it on every request.
    """

    def __init__(self, base_url: str = SUPABASE_URL, anon_key: str = SUPABASE_ANON_KEY,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initializes the HTTP client with proper timeout configuration.
        Args:
            base_url (str): Project URL of the backend.
            anon_key (str): Public API key, sent as `apikey` header.
            transport (httpx.AsyncBaseTransport | None): Custom transport (tests, proxies).
        """
        self.anon_key = anon_key
        self.access_token: Optional[str] = None
        timeout_config = httpx.Timeout(HTTP_TIMEOUT, read=HTTP_READ_TIMEOUT)
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_config,
            headers={"apikey": anon_key},
            transport=transport,
        )

    async def aclose(self):
        """Closes the HTTP client session."""
        await self.client.aclose()

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token or self.anon_key}"}

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}
        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()  # HTTPStatusError en 4xx/5xx
            return response
        except httpx.TimeoutException:
            log.error(f"Backend Timeout en {method} {url}. Estado desconocido.")
            raise
        except httpx.HTTPStatusError as e:
            log.error(f"Error HTTP del backend en {method} {url}: "
                      f"{e.response.status_code} - {error_message(e.response)}")
            raise
        except httpx.TransportError as e:
            log.error(f"Backend no disponible en {method} {url}: {e}")
            raise
        except httpx.RequestError as e:
            log.error(f"Respuesta inválida del backend en {method} {url}: {e!r}")
            raise

    # --- Auth ---

    async def sign_in(self, email: str, password: str) -> dict:
        """
        Signs the operator in with email and password.
        Returns:
            dict: The authenticated user object.
        Raises:
            httpx.HTTPStatusError: On wrong credentials (400) or server errors.
        """
        response = await self._request(
            "POST", "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        data = response.json()
        self.access_token = data["access_token"]
        log.info(f"Sesión iniciada para {email}.")
        return data.get("user") or {}

    async def sign_out(self):
        if not self.access_token:
            return
        try:
            await self._request("POST", "/auth/v1/logout")
        finally:
            self.access_token = None

    async def get_user(self) -> Optional[dict]:
        """
        Returns the signed-in user, or None without a valid session.
        Raises:
            httpx.HTTPError: On transport failures or non-auth server errors.
        """
        if not self.access_token:
            return None
        try:
            response = await self._request("GET", "/auth/v1/user")
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (401, 403):
                log.warning("Token de sesión vencido o inválido.")
                self.access_token = None
                return None
            raise
        return response.json()

    # --- Catálogo ---

    async def search_products(self, term: str = "") -> List[Product]:
        """
        Lists catalog products ordered by name, optionally filtered by a
        case-insensitive substring of the name.
        """
        params = {"select": "*", "order": "nombre"}
        if term:
            params["nombre"] = f"ilike.*{term}*"
        response = await self._request("GET", f"/rest/v1/{PRODUCTS_TABLE}", params=params)
        return [Product.model_validate(row) for row in response.json()]

    async def get_product(self, product_id: int) -> Optional[Product]:
        params = {"select": "*", "id": f"eq.{product_id}"}
        response = await self._request("GET", f"/rest/v1/{PRODUCTS_TABLE}", params=params)
        rows = response.json()
        return Product.model_validate(rows[0]) if rows else None

    # --- Ventas ---

    async def record_sale(self, sale: SaleRequest):
        """
        Calls the atomic sale procedure (header + lines + stock decrement).
        Args:
            sale (SaleRequest): Validated sale payload.
        Returns:
            The procedure's JSON result (usually the new sale id), or None.
        Raises:
            httpx.TimeoutException: If the backend does not answer in time.
            httpx.HTTPStatusError: If the procedure rejects the sale (e.g. stock).
        """
        response = await self._request("POST", f"/rest/v1/rpc/{SALE_RPC_NAME}", json=sale.to_rpc_params())
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            # La venta ya quedó registrada; el cuerpo no importa
            log.warning(f"Respuesta no JSON de {SALE_RPC_NAME} (HTTP {response.status_code}); se asume éxito.")
            return None
