"""Pydantic request schemas for the HTTP surface.

Each request body is validated once, here, before it reaches a service.
"""

from pydantic import BaseModel, Field

from orderflow.order.order import OrderStatus


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str | None = None
    line1: str
    line2: str | None = None
    city: str
    state: str | None = None
    postal_code: str
    country: str = Field(default="US", min_length=2, max_length=2)
    phone: str | None = None


class DestinationSchema(BaseModel):
    full_name: str | None = None
    line1: str | None = None
    city: str
    state: str
    postal_code: str
    country: str = Field(min_length=2, max_length=2)


class DimensionsSchema(BaseModel):
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class PackageSchema(BaseModel):
    weight: float = Field(gt=0)
    dimensions: DimensionsSchema


class CardSchema(BaseModel):
    number: str | None = None
    exp_month: int | None = None
    exp_year: int | None = None
    cvc: str | None = None


class BillingDetailsSchema(BaseModel):
    name: str | None = None
    email: str | None = None


class PaymentMethodSchema(BaseModel):
    type: str
    card: CardSchema | None = None
    billing_details: BillingDetailsSchema | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class SetQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    payment_method: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "full_name": "Ada Lovelace",
                        "line1": "1 Market St",
                        "city": "San Francisco",
                        "state": "CA",
                        "postal_code": "94105",
                        "country": "US",
                    },
                    "payment_method": "card",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class CreateIntentRequest(BaseModel):
    amount: int = Field(description="Amount in cents")
    currency: str = Field(default="usd", min_length=3, max_length=3)
    order_id: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class ConfirmIntentRequest(BaseModel):
    payment_method: PaymentMethodSchema
    processor: str = "STRIPE"


class ProcessPaymentRequest(BaseModel):
    amount: int = Field(description="Amount in cents")
    currency: str = Field(default="usd", min_length=3, max_length=3)
    order_id: str | None = None
    payment_method: PaymentMethodSchema
    processor: str = "STRIPE"
    metadata: dict[str, str] = Field(default_factory=dict)


class RefundRequest(BaseModel):
    transaction_id: str
    amount: int | None = Field(default=None, gt=0, description="Amount in cents; defaults to the remaining balance")
    reason: str = "requested_by_customer"


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------
class RatesRequest(BaseModel):
    package: PackageSchema
    destination: DestinationSchema


class SelectedRateSchema(BaseModel):
    carrier: str
    service: str
    rate: float = Field(gt=0)


class CreateLabelRequest(BaseModel):
    order_id: str
    selected_rate: SelectedRateSchema
    destination: DestinationSchema | None = None
