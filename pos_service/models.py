"""
models.py — Data Models for the Point of Sale

This module defines the typed records exchanged with the hosted backend and
with API callers. Backend rows are validated here, at the boundary, before
they reach the cart or the payment ledger.

Models:
    - Product: A catalog row from the `productos` table.
    - CartLine: One product selected for sale, with its snapshot price and stock.
    - PaymentMethod / PaymentEntry: One payment method's share of a sale.
    - SaleLineItem / SaleRequest: Payload of the atomic sale RPC.
    - CheckoutOutcome: Result of a checkout, returned to the caller.
    - *Request: Request bodies accepted by the REST API.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, Field, PlainSerializer, computed_field, field_validator

from .money import to_money

# Los numeric de Postgres viajan como número JSON
WireMoney = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    YAPE = "yape"
    PLIN = "plin"

    @property
    def label(self) -> str:
        return PAYMENT_METHOD_LABELS[self]


PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH: "Efectivo",
    PaymentMethod.CARD: "Tarjeta",
    PaymentMethod.TRANSFER: "Transferencia",
    PaymentMethod.YAPE: "Yape",
    PaymentMethod.PLIN: "Plin",
}


class Product(BaseModel):
    """
    Represents a product row from the backend catalog.

    Attributes:
        id (int): Primary key of the product.
        name (str): Display name (`nombre` column).
        unit_price (Decimal): Current price (`precio` column), two decimal places.
        stock_quantity (int): Units available (`stock` column).
        image_url (str | None): Public URL of the product picture (`imagen_url`).
    """
    id: int
    name: str = Field(validation_alias=AliasChoices("name", "nombre"))
    unit_price: Decimal = Field(validation_alias=AliasChoices("unit_price", "precio"))
    stock_quantity: int = Field(0, validation_alias=AliasChoices("stock_quantity", "stock"))
    image_url: Optional[str] = Field(None, validation_alias=AliasChoices("image_url", "imagen_url"))

    @field_validator("unit_price", mode="before")
    @classmethod
    def _price_as_money(cls, value):
        return to_money(value)

    @field_validator("stock_quantity", mode="before")
    @classmethod
    def _missing_stock_is_zero(cls, value):
        return 0 if value is None else value


class CartLine(BaseModel):
    """
    One product selected for sale.

    `unit_price` and `stock_ceiling` are snapshots taken when the product was
    added; the line keeps `1 <= quantity <= stock_ceiling`.
    """
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int = Field(..., ge=1)
    stock_ceiling: int

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


class PaymentEntry(BaseModel):
    method: PaymentMethod
    amount: str


class SaleLineItem(BaseModel):
    product_id: int = Field(serialization_alias="producto_id")
    quantity: int = Field(..., gt=0, serialization_alias="cantidad")
    unit_price: WireMoney = Field(serialization_alias="precio_unitario")


class SaleRequest(BaseModel):
    """
    Parameters of the `registrar_venta` RPC.

    The backend function inserts the sale header and its lines and decrements
    stock for every product in one transaction.

    Attributes:
        total (Decimal): Sale total.
        payment_summary (str): Human-readable split, e.g. "Efectivo (40.00) + Yape (25.50)".
        customer_id (int | None): Optional client the sale belongs to.
        user_id (str): Authenticated operator recording the sale.
        line_items (List[SaleLineItem]): One entry per cart line.
    """
    total: WireMoney = Field(serialization_alias="p_total")
    payment_summary: str = Field(serialization_alias="p_metodo_pago")
    customer_id: Optional[int] = Field(None, serialization_alias="p_cliente_id")
    user_id: str = Field(serialization_alias="p_user_id")
    line_items: List[SaleLineItem] = Field(..., min_length=1, serialization_alias="p_detalles")

    def to_rpc_params(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class CheckoutOutcome(BaseModel):
    success: bool
    message: str
    total: Optional[Decimal] = None
    payment_summary: Optional[str] = None


# --- API request bodies ---

class SignInRequest(BaseModel):
    email: str
    password: str


class AddItemRequest(BaseModel):
    product_id: int


class ChangeQuantityRequest(BaseModel):
    delta: int


class SetAmountRequest(BaseModel):
    amount: str


class CheckoutRequest(BaseModel):
    customer_id: Optional[int] = None
