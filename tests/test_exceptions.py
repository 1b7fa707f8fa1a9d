"""Tests for custom exception classes."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from cachao.exceptions import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    CursorError,
    NotFoundError,
    PaymentError,
    RateLimitError,
    ValidationError,
)


class TestAppError:
    """Tests for base AppError class."""

    def test_default_status_code(self) -> None:
        error = AppError('Something went wrong')
        assert error.status_code == 500
        assert error.message == 'Something went wrong'

    def test_to_dict_without_detail(self) -> None:
        assert AppError('Error message').to_dict() == {'error': 'Error message'}

    def test_to_dict_with_detail(self) -> None:
        result = AppError('Error', detail='Additional info').to_dict()
        assert result == {'error': 'Error', 'detail': 'Additional info'}


class TestValidationError:
    def test_status_code_is_400(self) -> None:
        assert ValidationError('Invalid input').status_code == 400

    def test_includes_field_in_detail(self) -> None:
        error = ValidationError('name is required', field='name')
        assert error.field == 'name'
        assert 'name' in error.detail


class TestNotFoundError:
    def test_message_names_resource(self) -> None:
        error = NotFoundError('Event', 12)
        assert error.status_code == 404
        assert error.message == 'Event not found'
        assert error.identifier == 12
        assert error.to_dict()['detail'] == 'id: 12'

    def test_without_identifier_has_no_detail(self) -> None:
        assert NotFoundError('User').to_dict() == {'error': 'User not found'}


class TestAuthErrors:
    def test_authentication_is_401(self) -> None:
        assert AuthenticationError().status_code == 401

    def test_authorization_default_message(self) -> None:
        error = AuthorizationError()
        assert error.status_code == 403
        assert error.message == 'No permission'

    def test_authorization_custom_message(self) -> None:
        assert AuthorizationError('Forbidden').message == 'Forbidden'


def test_conflict_is_409() -> None:
    error = ConflictError('Nickname is already taken')
    assert error.status_code == 409


def test_rate_limit_is_429() -> None:
    assert RateLimitError().status_code == 429


def test_payment_error_is_bad_gateway() -> None:
    error = PaymentError('Payment provider error', detail='card_declined')
    assert error.status_code == 502
    assert error.to_dict()['detail'] == 'card_declined'


def test_configuration_error_names_setting() -> None:
    error = ConfigurationError('S3_BUCKET_NAME')
    assert error.status_code == 500
    assert 'S3_BUCKET_NAME' in error.message
    assert error.config_name == 'S3_BUCKET_NAME'


def test_cursor_error_is_validation_error() -> None:
    error = CursorError('bad padding')
    assert isinstance(error, ValidationError)
    assert error.message == 'Invalid cursor'
    assert error.detail == 'bad padding'
