"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class OrderSortField(str, Enum):
    """Columns a listing may be sorted by."""

    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    TOTAL = "total"
    ORDER_NUMBER = "order_number"
    STATUS = "status"
    CUSTOMER_NAME = "customer_name"
