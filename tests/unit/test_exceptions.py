"""Tests for the exception hierarchy and its HTTP mapping."""

import pytest

from utm_connect.core.exceptions import (
    AuthError,
    ConflictError,
    DatabaseError,
    DatabaseNotConnectedError,
    DatabasePoolTimeoutError,
    FileUploadError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UTMConnectError,
    ValidationError,
)
from web.exception_handlers import problem_type


@pytest.mark.parametrize(
    "error,status",
    [
        (ValidationError("bad"), 400),
        (AuthError(), 401),
        (ForbiddenError(), 403),
        (NotFoundError(), 404),
        (ConflictError(), 409),
        (InternalError(), 500),
        (DatabaseNotConnectedError(), 500),
        (FileUploadError(), 400),
    ],
)
def test_http_status_mapping(error, status):
    assert isinstance(error, UTMConnectError)
    assert error._get_http_status() == status


def test_validation_error_joins_violations():
    error = ValidationError(violations=["first", "second"], field="password")

    assert error.message == "first; second"
    assert error.violations == ["first", "second"]
    assert error.details == {"violations": ["first", "second"], "field": "password"}
    assert error.recoverable is False


def test_validation_error_message_becomes_single_violation():
    error = ValidationError("passwords do not match", field="password_confirm")
    assert error.violations == ["passwords do not match"]


def test_database_errors_are_internal():
    assert issubclass(DatabaseError, InternalError)
    error = DatabasePoolTimeoutError(timeout=30.0, pool_size=10)
    assert error.recoverable is True
    assert error.details == {"timeout": 30.0, "pool_size": 10}


def test_to_dict():
    data = NotFoundError("user not found").to_dict()
    assert data["error"] == "NotFoundError"
    assert data["message"] == "user not found"
    assert data["recoverable"] is False
    assert "timestamp" in data


@pytest.mark.parametrize(
    "error",
    [ValidationError, AuthError, ForbiddenError, NotFoundError, ConflictError, InternalError],
)
def test_framework_statuses_share_domain_problem_type(error):
    assert problem_type(error.http_status) == (error.error_type_uri, error.title)


def test_unmapped_status_uses_http_phrase():
    assert problem_type(405) == ("urn:utmconnect:error:http-405", "Method Not Allowed")
    assert problem_type(599) == ("urn:utmconnect:error:http-599", "Error")
