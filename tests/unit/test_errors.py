"""Tests for oc_common.errors and oc_common.response."""

import pytest

from src.oc_common.errors import (
    AppError,
    AssistantError,
    AuthError,
    ConversationNotFoundError,
    ForbiddenError,
    InternalError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidStateError,
    InvalidTransitionError,
    OrderError,
    OrderNotFoundError,
    OrderNumberExhaustedError,
    SelfDeletionError,
    UserNotFoundError,
    UsernameExistsError,
)
from src.oc_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_custom_http_status(self) -> None:
        err = AppError(code=1001, message="Username taken", http_status=409)
        assert err.http_status == 409

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestOrderErrors:
    def test_order_not_found(self) -> None:
        err = OrderNotFoundError("ord_abc")
        assert err.code == 4004
        assert err.http_status == 404
        assert "ord_abc" in err.message

    def test_invalid_transition_names_both_states(self) -> None:
        err = InvalidTransitionError("pending", "shipped")
        assert err.code == 4010
        assert err.http_status == 422
        assert err.message == "Invalid status transition from pending to shipped"
        assert (err.current, err.requested) == ("pending", "shipped")

    def test_invalid_state(self) -> None:
        err = InvalidStateError("delete", "processing")
        assert err.code == 4011
        assert err.http_status == 422
        assert err.message == "Cannot delete order in status processing"
        assert err.operation == "delete"
        assert err.status == "processing"

    def test_order_number_exhausted(self) -> None:
        err = OrderNumberExhaustedError(5)
        assert err.code == 4012
        assert err.http_status == 503
        assert "5" in err.message

    @pytest.mark.parametrize("detail", [None, "Admin role required"])
    def test_forbidden(self, detail: str | None) -> None:
        err = ForbiddenError() if detail is None else ForbiddenError(detail)
        assert err.code == 4030
        assert err.http_status == 403
        assert err.message == (detail or "Access denied")

    def test_internal(self) -> None:
        err = InternalError()
        assert err.code == 9002
        assert err.http_status == 500


class TestAccountAndChatErrors:
    def test_user_not_found(self) -> None:
        err = UserNotFoundError("u-1")
        assert (err.code, err.http_status) == (1006, 404)
        assert err.user_id == "u-1"

    def test_self_deletion(self) -> None:
        err = SelfDeletionError()
        assert (err.code, err.http_status) == (1007, 403)
        assert err.message == "Cannot delete your own account"

    def test_conversation_not_found(self) -> None:
        err = ConversationNotFoundError("conv_1")
        assert isinstance(err, AssistantError)
        assert (err.code, err.http_status) == (5004, 404)
        assert "conv_1" in err.message


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"id": "ord_1"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "ord_1"}

    def test_error(self) -> None:
        resp = error_response(4010, "Invalid status transition from pending to shipped")
        assert resp.code == 4010
        assert resp.data is None

    def test_request_id_generated(self) -> None:
        assert ApiResponse().request_id.startswith("req_")

    def test_serialization(self) -> None:
        d = success_response({"total": "70.3782"}).model_dump()
        assert set(d) == {"code", "message", "data", "timestamp", "request_id"}


class TestHierarchy:
    @pytest.mark.parametrize(
        "err",
        [
            OrderNotFoundError("ord_1"),
            InvalidTransitionError("pending", "shipped"),
            InvalidStateError("modify", "shipped"),
            OrderNumberExhaustedError(3),
            ForbiddenError(),
        ],
    )
    def test_order_errors_share_base(self, err: AppError) -> None:
        assert isinstance(err, OrderError)
        assert 4000 <= err.code < 5000

    def test_auth_errors_share_base(self) -> None:
        for err in (
            UsernameExistsError(),
            InvalidCredentialsError(),
            InvalidRefreshTokenError(),
            UserNotFoundError("u-1"),
            SelfDeletionError(),
        ):
            assert isinstance(err, AuthError)
            assert 1000 <= err.code < 2000
