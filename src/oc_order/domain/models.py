"""Order domain model — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.oc_common.enums import OrderStatus


@dataclass(frozen=True)
class Address:
    street: str
    city: str
    state: str
    zip_code: str
    country: str

    def to_dict(self) -> dict[str, str]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> "Address":
        return cls(
            street=data["street"],
            city=data["city"],
            state=data["state"],
            zip_code=data["zip_code"],
            country=data["country"],
        )


@dataclass
class OrderItem:
    id: str
    product_id: str
    name: str
    quantity: int  # >= 1
    unit_price: Decimal  # >= 0
    line_total: Decimal = field(init=False)

    def __post_init__(self) -> None:
        self.line_total = self.unit_price * self.quantity


@dataclass
class Order:
    id: str
    order_number: str
    owner_id: str
    # Customer snapshot, independent of any user account
    customer_name: str
    customer_email: str
    customer_phone: str | None
    shipping_address: Address
    billing_address: Address
    items: list[OrderItem]
    # Financials, fixed at creation
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    status: OrderStatus = OrderStatus.PENDING
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id
