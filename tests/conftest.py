"""Pytest configuration and fixtures for backend tests.

Handlers open their own sessions through ``get_engine()``, so each test
installs a fresh in-memory SQLite engine with ``set_engine``. AWS and
Stripe clients are replaced with mocks.
"""

from __future__ import annotations

import json
import os
import sys
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from decimal import Decimal
from pathlib import Path
from typing import Any
from typing import Generator
from typing import Optional
from uuid import uuid4

import pytest

# Add backend source to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

OWNER_SUB = 'owner-sub-0001'
OWNER_EMAIL = 'owner@example.com'
OTHER_SUB = 'other-sub-0002'
BUCKET = 'cachao-media-test'


# --- Environment ---


@pytest.fixture(autouse=True)
def aws_env(monkeypatch) -> None:
    """Settings every handler expects, without touching real AWS."""
    monkeypatch.setenv('AWS_REGION', 'eu-west-1')
    monkeypatch.setenv('S3_BUCKET_NAME', BUCKET)
    monkeypatch.setenv('COGNITO_USER_POOL_ID', 'eu-west-1_TestPool')
    monkeypatch.setenv('COGNITO_CLIENT_ID', 'test-client-id')
    monkeypatch.setenv('STRIPE_SECRET_KEY', 'sk_test_dummy')
    monkeypatch.setenv('STRIPE_WEBHOOK_SECRET', 'whsec_dummy')
    monkeypatch.setenv('FRONTEND_URL', 'https://cachao.test')
    monkeypatch.delenv('DATABASE_IAM_AUTH', raising=False)
    monkeypatch.delenv('CORS_ALLOWED_ORIGINS', raising=False)
    monkeypatch.delenv('THUMBNAIL_FUNCTION_NAME', raising=False)


@pytest.fixture(autouse=True)
def reset_caches() -> Generator:
    """Drop module-level client, secret and JWKS caches between tests."""
    from cachao.auth.jwt_validator import clear_jwks_cache
    from cachao.services.aws_clients import clear_client_cache
    from cachao.services.secrets import clear_secret_cache

    yield
    clear_client_cache()
    clear_secret_cache()
    clear_jwks_cache()


# --- Database Fixtures ---


@pytest.fixture
def test_engine() -> Generator:
    """Create an in-memory database shared by every session in the test.

    Set TEST_DATABASE_URL to run against PostgreSQL instead.
    """
    from sqlalchemy import create_engine
    from sqlalchemy.pool import StaticPool

    from cachao.db.base import Base
    from cachao.db.engine import clear_engine_cache
    from cachao.db.engine import set_engine

    url = os.getenv('TEST_DATABASE_URL', 'sqlite://')
    kwargs: dict[str, Any] = {
        'echo': os.getenv('TEST_SQL_ECHO', '').lower() == 'true',
    }
    if url.startswith('sqlite'):
        kwargs['connect_args'] = {'check_same_thread': False}
        kwargs['poolclass'] = StaticPool
    engine = create_engine(url, **kwargs)

    Base.metadata.create_all(engine)
    set_engine(engine)

    yield engine

    Base.metadata.drop_all(engine)
    clear_engine_cache()


@pytest.fixture
def db_session(test_engine) -> Generator:
    """Session for arranging and inspecting rows around handler calls."""
    from sqlalchemy.orm import Session

    session = Session(test_engine, expire_on_commit=False)
    yield session
    session.close()


# --- Sample Data Factories ---


@pytest.fixture
def sample_event(db_session):
    """An event owned by OWNER_SUB."""
    from cachao.db.models import Event

    event = Event(
        name='Cachao Summer Festival',
        description='Salsa and bachata weekend',
        start_date=datetime(2030, 7, 10, 18, 0, tzinfo=timezone.utc),
        end_date=datetime(2030, 7, 13, 2, 0, tzinfo=timezone.utc),
        cognito_sub=OWNER_SUB,
    )
    db_session.add(event)
    db_session.commit()
    return event


@pytest.fixture
def sample_ticket(db_session, sample_event):
    """A 100.00 full pass with 10 seats for the sample event."""
    from cachao.db.models import Ticket

    ticket = Ticket(
        event_id=sample_event.id,
        name='Full Pass',
        price=Decimal('100.00'),
        max_quantity=10,
        sold_quantity=0,
        is_active=True,
    )
    db_session.add(ticket)
    db_session.commit()
    return ticket


@pytest.fixture
def sample_staff(db_session, sample_event):
    """An artist attached to the sample event."""
    from cachao.db.models import EventStaff
    from cachao.db.models import StaffRole

    staff = EventStaff(
        event_id=sample_event.id,
        name='Ana Salsa',
        email='ana@example.com',
        phone='+34600111222',
        role=StaffRole.ARTIST,
        is_public=True,
        bio='Cuban salsa instructor',
        notes='Vegetarian',
    )
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture
def sample_album(db_session, sample_event):
    """An album created by OWNER_SUB."""
    from cachao.db.models import Album

    album = Album(
        event_id=sample_event.id,
        name='Saturday Social',
        album_date=date(2030, 7, 12),
        cognito_sub=OWNER_SUB,
    )
    db_session.add(album)
    db_session.commit()
    return album


def future_date(days: int = 30) -> date:
    return datetime.now(timezone.utc).date() + timedelta(days=days)


# --- API Event Fixtures ---


def make_event(
    method: str,
    path: str,
    body: Any = None,
    sub: Optional[str] = None,
    email: Optional[str] = None,
    groups: str = '',
    query: Optional[dict[str, str]] = None,
    headers: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Build an API Gateway proxy event, signed in when ``sub`` is given."""
    authorizer: dict[str, Any] = {}
    if sub:
        authorizer = {
            'claims': {
                'sub': sub,
                'email': email or '',
                'cognito:groups': groups,
            }
        }
    request_headers = {'Content-Type': 'application/json'} if body is not None else {}
    request_headers.update(headers or {})
    return {
        'httpMethod': method,
        'path': path,
        'queryStringParameters': query or {},
        'multiValueQueryStringParameters': {},
        'headers': request_headers,
        'requestContext': {
            'requestId': str(uuid4()),
            'authorizer': authorizer,
        },
        'body': body if body is None or isinstance(body, str) else json.dumps(body),
        'isBase64Encoded': False,
    }


def body_of(response: dict[str, Any]) -> Any:
    return json.loads(response['body'])


# --- Mock Fixtures ---


@pytest.fixture
def mock_s3(mocker):
    """S3 client whose presigned URLs are predictable."""
    client = mocker.MagicMock()
    client.generate_presigned_url.side_effect = (
        lambda operation, Params, ExpiresIn: f"https://signed.test/{operation}/{Params['Key']}"
    )
    client.create_multipart_upload.return_value = {'UploadId': 'upload-123'}
    client.complete_multipart_upload.return_value = {
        'Location': f'https://{BUCKET}.s3.eu-west-1.amazonaws.com/videos/done.mp4',
        'ETag': '"final-etag"',
    }
    mocker.patch('cachao.services.storage.get_s3_client', return_value=client)
    return client


@pytest.fixture
def mock_cognito(mocker):
    """Cognito IdP client used by the identity service."""
    client = mocker.MagicMock()
    mocker.patch('cachao.services.identity.get_cognito_idp_client', return_value=client)
    return client


@pytest.fixture
def mock_boto3_client(mocker):
    """Mock boto3 client for AWS service calls."""
    return mocker.patch('boto3.client')
