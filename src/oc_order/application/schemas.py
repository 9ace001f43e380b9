# src/oc_order/application/schemas.py
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from src.oc_common.datetime_utils import ensure_utc
from src.oc_common.enums import OrderSortField, OrderStatus, SortOrder
from src.oc_order.domain.models import Address, Order, OrderItem
from src.oc_order.domain.query import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, PageMeta


class AddressSchema(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=128)
    state: str = Field(..., min_length=1, max_length=128)
    zip_code: str = Field(..., min_length=1, max_length=32)
    country: str = Field(..., min_length=1, max_length=64)

    def to_domain(self) -> Address:
        return Address(
            street=self.street,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
            country=self.country,
        )

    @classmethod
    def from_domain(cls, address: Address) -> "AddressSchema":
        return cls(**address.to_dict())


class OrderItemRequest(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class CreateOrderRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: str | None = Field(None, max_length=32)
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None  # defaults to shipping
    items: list[OrderItemRequest] = Field(..., min_length=1)
    notes: str | None = None


class UpdateOrderRequest(BaseModel):
    """Content edit. Line items are fixed at creation and rejected here."""

    model_config = ConfigDict(extra="forbid")

    customer_name: str | None = Field(None, min_length=1, max_length=255)
    customer_email: EmailStr | None = None
    customer_phone: str | None = Field(None, max_length=32)
    shipping_address: AddressSchema | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "UpdateOrderRequest":
        for name in ("customer_name", "customer_email", "shipping_address"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, object]:
        """Only the fields the caller actually sent."""
        data: dict[str, object] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if isinstance(value, AddressSchema):
                value = value.to_domain()
            data[name] = value
        return data


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    reason: str | None = Field(None, max_length=255)


class OrderListQuery(BaseModel):
    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    status: OrderStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    sort_by: OrderSortField = OrderSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        # naive bounds are UTC; mixing naive and aware must still compare
        return ensure_utc(v) if v is not None else v

    @model_validator(mode="after")
    def date_range_ordered(self) -> "OrderListQuery":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            id=item.id,
            product_id=item.product_id,
            name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.line_total,
        )


class OrderResponse(BaseModel):
    id: str
    order_number: str
    owner_id: str
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    shipping_address: AddressSchema
    billing_address: AddressSchema
    status: OrderStatus
    items: list[OrderItemResponse]
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            owner_id=order.owner_id,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            shipping_address=AddressSchema.from_domain(order.shipping_address),
            billing_address=AddressSchema.from_domain(order.billing_address),
            status=order.status,
            items=[OrderItemResponse.from_domain(i) for i in order.items],
            subtotal=order.subtotal,
            discount=order.discount,
            tax=order.tax,
            shipping=order.shipping,
            total=order.total,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PageMetaResponse(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def from_domain(cls, meta: PageMeta) -> "PageMetaResponse":
        return cls(
            total=meta.total,
            page=meta.page,
            limit=meta.limit,
            total_pages=meta.total_pages,
        )


class OrderListResponse(BaseModel):
    data: list[OrderResponse]
    meta: PageMetaResponse


class OrderCreatedResponse(BaseModel):
    id: str
    order_number: str
    status: OrderStatus
    total: Decimal
    created_at: datetime | None = None


class OrderUpdatedResponse(BaseModel):
    id: str
    order_number: str
    status: OrderStatus
    updated_at: datetime | None = None


class DeleteOrderResponse(BaseModel):
    id: str
    message: str = "Order deleted successfully"
