"""Error codes and the AppError hierarchy.

Every error the service raises on purpose is an AppError; main.py renders it
as an ApiResponse with ``code`` set and ``data`` null.

Code ranges:
  1xxx: auth / user
  4xxx: order lifecycle
  5xxx: assistant conversations
  9xxx: system
"""


class AppError(Exception):
    """Base application error."""

    def __init__(self, code: int, message: str, http_status: int = 500) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class AuthError(AppError):
    pass


class OrderError(AppError):
    pass


class AssistantError(AppError):
    pass


# --- 1xxx: auth / user ---

class UsernameExistsError(AuthError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AuthError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AuthError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AuthError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AuthError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class UserNotFoundError(AuthError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1006, f"User not found: {user_id}", 404)
        self.user_id = user_id


class SelfDeletionError(AuthError):
    def __init__(self) -> None:
        super().__init__(1007, "Cannot delete your own account", 403)


# --- 4xxx: order lifecycle ---

class OrderNotFoundError(OrderError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)
        self.order_id = order_id


class InvalidTransitionError(OrderError):
    """Requested status is not reachable from the current one."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(4010, f"Invalid status transition from {current} to {requested}", 422)
        self.current = current
        self.requested = requested


class InvalidStateError(OrderError):
    """Content edit or delete attempted while the order is in a disallowed status."""

    def __init__(self, operation: str, status: str) -> None:
        super().__init__(4011, f"Cannot {operation} order in status {status}", 422)
        self.operation = operation
        self.status = status


class OrderNumberExhaustedError(OrderError):
    def __init__(self, attempts: int) -> None:
        super().__init__(
            4012, f"Could not allocate a unique order number after {attempts} attempts", 503
        )


class ForbiddenError(OrderError):
    def __init__(self, detail: str = "Access denied") -> None:
        super().__init__(4030, detail, 403)


# --- 5xxx: assistant conversations ---

class ConversationNotFoundError(AssistantError):
    """Unknown id, or a conversation owned by someone else."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(5004, f"Conversation not found: {conversation_id}", 404)
        self.conversation_id = conversation_id


# --- 9xxx: system ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
