"""Shared boto3 client factory with caching."""

from __future__ import annotations

import os
from typing import Any

import boto3
from botocore.config import Config

_CLIENT_CACHE: dict[tuple[str, str | None], Any] = {}


def get_client(service: str, region_name: str | None = None) -> Any:
    """Return a cached boto3 client for the given service."""
    cache_key = (service, region_name)
    if cache_key in _CLIENT_CACHE:
        return _CLIENT_CACHE[cache_key]
    kwargs: dict[str, Any] = {"region_name": region_name}
    if service == "s3":
        # Virtual-hosted addressing with SigV4 so presigned URLs work in every region.
        kwargs["config"] = Config(
            signature_version="s3v4",
            s3={"addressing_style": "virtual"},
        )
    client = boto3.client(service, **kwargs)  # type: ignore[call-overload]
    _CLIENT_CACHE[cache_key] = client
    return client


def clear_client_cache() -> None:
    """Clear cached boto3 clients (useful in tests)."""
    _CLIENT_CACHE.clear()


def default_region() -> str:
    return os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "eu-west-1"


def get_s3_client(region_name: str | None = None) -> Any:
    return get_client("s3", region_name=region_name)


def get_secretsmanager_client(region_name: str | None = None) -> Any:
    return get_client("secretsmanager", region_name=region_name)


def get_cognito_idp_client(region_name: str | None = None) -> Any:
    return get_client("cognito-idp", region_name=region_name)


def get_lambda_client(region_name: str | None = None) -> Any:
    return get_client("lambda", region_name=region_name)


def get_rds_client(region_name: str | None = None) -> Any:
    return get_client("rds", region_name=region_name)
