"""Database connection helpers for Lambda runtime."""

from __future__ import annotations

import os
from urllib.parse import quote_plus

from cachao.exceptions import ConfigurationError
from cachao.services.aws_clients import get_rds_client
from cachao.services.secrets import get_secret_json


def get_database_url() -> str:
    """Resolve the database URL from env or Secrets Manager.

    ``DATABASE_URL`` wins when set. Otherwise the RDS secret named by
    ``DATABASE_SECRET_ARN`` supplies host, user and password, with
    ``DATABASE_*`` variables overriding individual fields.
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    secret_arn = os.getenv("DATABASE_SECRET_ARN")
    if not secret_arn:
        raise ConfigurationError("DATABASE_URL or DATABASE_SECRET_ARN")

    secret = get_secret_json(secret_arn)
    username = (
        os.getenv("DATABASE_USERNAME") or secret.get("username") or secret.get("user")
    )
    password = secret.get("password")
    host = os.getenv("DATABASE_HOST") or secret.get("host")
    use_iam_auth = use_iam_auth_enabled()
    if use_iam_auth:
        host = os.getenv("DATABASE_PROXY_ENDPOINT") or host
    port = os.getenv("DATABASE_PORT") or secret.get("port") or 5432
    database = (
        os.getenv("DATABASE_NAME")
        or secret.get("dbname")
        or secret.get("database")
        or "cachao"
    )

    if not username or not host:
        raise RuntimeError("Secret is missing database connection fields")
    if not use_iam_auth and not password:
        raise RuntimeError("Password is required for non-IAM authentication")

    if use_iam_auth:
        password = _generate_iam_token(str(host), int(port), str(username))

    return (
        "postgresql+psycopg://"
        f"{quote_plus(str(username))}:{quote_plus(str(password))}"
        f"@{host}:{port}/{database}"
    )


def use_iam_auth_enabled() -> bool:
    """Return True if RDS IAM authentication is enabled."""
    return str(os.getenv("DATABASE_IAM_AUTH", "")).lower() in {"1", "true", "yes"}


def _generate_iam_token(host: str, port: int, username: str) -> str:
    """Generate a short-lived IAM auth token for RDS Proxy."""
    region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
    if not region:
        raise ConfigurationError("AWS_REGION")

    client = get_rds_client(region_name=region)
    return client.generate_db_auth_token(
        DBHostname=host, Port=port, DBUsername=username
    )
