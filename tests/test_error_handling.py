"""
Tests for error handling and validation.
Covers the error envelope, custom exceptions, validation helpers and the
validation middleware.
"""

import json
from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError

from estate_api.middleware.validation import ValidationMiddleware
from estate_api.services.error_handler import ErrorHandlerService
from estate_api.utils.exceptions import (
    ValidationError,
    NotFoundError,
    PropertyNotFoundError,
    RateLimitExceededError,
    UnsupportedFileTypeError,
    UpstreamServiceError,
)
from estate_api.utils.validators import ValidationUtils


class TestErrorHandlerService:
    """Error envelope formatting."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            error_code="TEST_ERROR",
            message="Test error message",
            details=[{"field": "price", "message": "price is required"}],
            request_id="test123"
        )

        assert response["error"]["code"] == "TEST_ERROR"
        assert response["error"]["message"] == "Test error message"
        assert response["error"]["request_id"] == "test123"
        assert response["error"]["details"][0]["field"] == "price"
        assert response["error"]["timestamp"].endswith("Z")

    def test_details_omitted_when_empty(self):
        response = ErrorHandlerService.format_error_response("NOT_FOUND", "Property not found")

        assert "details" not in response["error"]

    def test_handle_api_exception(self):
        exception = ValidationError(
            "Password must be at least 6 characters",
            field_errors=[{"field": "password", "message": "Password must be at least 6 characters"}]
        )
        response = ErrorHandlerService.handle_api_exception(exception)

        assert response.status_code == 400
        data = json.loads(response.body)
        assert data["error"]["code"] == "VALIDATION_ERROR"
        assert data["error"]["details"][0]["field"] == "password"
        assert data["error"]["request_id"]

    def test_api_exception_keeps_headers(self):
        response = ErrorHandlerService.handle_api_exception(RateLimitExceededError(retry_after=30))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"

    def test_handle_validation_error(self):
        mock_error = Mock()
        mock_error.errors.return_value = [
            {"loc": ("body", "email"), "msg": "value is not a valid email address", "type": "value_error"},
            {"loc": ("body", "history", 0, "role"), "msg": "Field required", "type": "missing"},
        ]

        response = ErrorHandlerService.handle_validation_error(mock_error)

        assert response.status_code == 400
        data = json.loads(response.body)
        assert data["error"]["message"] == "email: value is not a valid email address"
        assert data["error"]["details"][1] == {
            "field": "history -> 0 -> role",
            "message": "Field required",
            "type": "missing",
        }

    def test_handle_integrity_error(self):
        orig = Exception("UNIQUE constraint failed: users.email")
        response = ErrorHandlerService.handle_database_error(IntegrityError("INSERT", {}, orig))

        assert response.status_code == 409
        data = json.loads(response.body)
        assert data["error"]["code"] == "INTEGRITY_ERROR"
        assert data["error"]["message"] == "Constraint violation: Duplicate value for unique field"

    def test_handle_database_error(self):
        response = ErrorHandlerService.handle_database_error(OperationalError("SELECT 1", {}, Exception("gone")))

        assert response.status_code == 500
        assert json.loads(response.body)["error"]["code"] == "DATABASE_ERROR"

    def test_handle_unexpected_error(self):
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret stack detail"))

        assert response.status_code == 500
        data = json.loads(response.body)
        assert data["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert data["error"]["message"] == "Server error"
        assert "secret" not in response.body.decode()


class TestExceptions:
    """Messages and codes carried by the custom exceptions."""

    def test_not_found_messages(self):
        assert PropertyNotFoundError().detail == "Property not found"
        assert NotFoundError("Image", 7).detail == "Image not found with ID: 7"

    def test_unsupported_file_type(self):
        exception = UnsupportedFileTypeError("application/pdf")

        assert exception.status_code == 400
        assert exception.error_code == "UNSUPPORTED_FILE_TYPE"

    def test_upstream_rate_limit_code(self):
        assert UpstreamServiceError("down").error_code == "UPSTREAM_ERROR"
        assert UpstreamServiceError("slow down", status_code=429).error_code == "UPSTREAM_RATE_LIMITED"


class TestValidationUtils:
    """Validation and lenient parsing helpers."""

    def test_password_policy_order(self):
        assert ValidationUtils.password_errors("abc") == [
            "Password must be at least 6 characters",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one number",
        ]
        assert ValidationUtils.password_errors("Secret123") == []

    def test_validate_password_raises_first_rule(self):
        with pytest.raises(ValidationError) as exc_info:
            ValidationUtils.validate_password("secret123", field_name="newPassword")

        assert exc_info.value.detail == "Password must contain at least one uppercase letter"
        assert exc_info.value.field_errors[0]["field"] == "newPassword"

    def test_require(self):
        assert ValidationUtils.require("  Lahore ", "location") == "Lahore"
        assert ValidationUtils.require(0, "bedrooms") == 0

        with pytest.raises(ValidationError) as exc_info:
            ValidationUtils.require("   ", "location")
        assert exc_info.value.detail == "location is required"

    @pytest.mark.parametrize("value, expected", [(1, 1), ("5", 5), (3.0, 3)])
    def test_valid_ratings(self, value, expected):
        assert ValidationUtils.validate_rating(value) == expected

    @pytest.mark.parametrize("value", [0, 6, "abc", None, 4.5])
    def test_invalid_ratings(self, value):
        with pytest.raises(ValidationError):
            ValidationUtils.validate_rating(value)

    def test_parse_decimal(self):
        assert ValidationUtils.parse_decimal("1500000") == Decimal("1500000")
        assert ValidationUtils.parse_decimal("") is None
        assert ValidationUtils.parse_decimal("cheap") is None
        assert ValidationUtils.parse_decimal("NaN") is None

    def test_parse_int(self):
        assert ValidationUtils.parse_int("3") == 3
        assert ValidationUtils.parse_int("3 beds") == 3
        assert ValidationUtils.parse_int("three") is None
        assert ValidationUtils.parse_int("2147483647") == 2147483647
        assert ValidationUtils.parse_int("2147483648") is None
        assert ValidationUtils.parse_int("99999999999999999999") is None
        assert ValidationUtils.parse_positive_int("0", default=1) == 1
        assert ValidationUtils.parse_positive_int("500", default=20, maximum=100) == 100

    def test_ids(self):
        assert ValidationUtils.is_valid_id("12")
        assert not ValidationUtils.is_valid_id("0")
        assert not ValidationUtils.is_valid_id("abc")
        assert not ValidationUtils.is_valid_id("99999999999999999999")
        assert ValidationUtils.parse_id_list("3, 1,x,-2,,7") == [3, 1, 7]


class TestValidationMiddleware:
    """Request size and content-type checks."""

    @pytest.fixture
    def test_app(self):
        test_app = FastAPI()
        test_app.add_middleware(ValidationMiddleware, max_request_size=64, enable_request_logging=False)

        @test_app.get("/api/ping")
        async def ping():
            return {"message": "pong"}

        @test_app.post("/api/echo")
        async def echo(data: dict):
            return data

        return test_app

    def test_request_id_header(self, test_app):
        client = TestClient(test_app)

        response = client.get("/api/ping")

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 8

    def test_request_size_validation(self, test_app):
        client = TestClient(test_app)

        response = client.post("/api/echo", json={"description": "x" * 200})

        assert response.status_code == 400
        assert "exceeds maximum allowed size" in response.json()["error"]["message"]

    def test_content_type_validation(self, test_app):
        client = TestClient(test_app)

        response = client.post("/api/echo", content=b"hello", headers={"Content-Type": "text/plain"})

        assert response.status_code == 400
        assert "Unsupported content type" in response.json()["error"]["message"]

    def test_json_passes(self, test_app):
        client = TestClient(test_app)

        response = client.post("/api/echo", json={"a": 1})

        assert response.status_code == 200
        assert response.json() == {"a": 1}


class TestAPIErrorResponses:
    """Error envelopes returned by the real application."""

    async def test_unknown_route(self, client: AsyncClient):
        response = await client.get("/api/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        error = response.json()["error"]
        assert error["code"] == "HTTP_404"
        assert error["request_id"] == response.headers["X-Request-ID"]

    async def test_malformed_json(self, client: AsyncClient):
        response = await client.post(
            "/api/login", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_missing_body_field(self, client: AsyncClient):
        response = await client.post("/api/login", json={"email": "sara@example.com"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        details = response.json()["error"]["details"]
        assert details[0]["field"] == "password"
        assert details[0]["type"] == "missing"

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["database"] == "connected"
