"""Shared helpers for API Gateway authorizers and bearer-token parsing."""

from __future__ import annotations

from typing import Any, Mapping


def get_header(headers: Mapping[str, Any], name: str) -> str:
    """Get a header value case-insensitively."""
    for key, value in headers.items():
        if key.lower() == name.lower():
            return str(value)
    return ''


def extract_token(headers: Mapping[str, Any]) -> str | None:
    """Extract the JWT from the Authorization header, with or without Bearer."""
    auth_header = get_header(headers, 'authorization')
    if not auth_header:
        return None
    if auth_header.lower().startswith('bearer '):
        return auth_header[7:].strip() or None
    return auth_header.strip() or None


def policy(
    effect: str,
    method_arn: str,
    principal_id: str,
    context: dict[str, Any],
) -> dict[str, Any]:
    """Build an IAM policy document for API Gateway.

    Allow policies cover the whole stage (``api-id/stage/*``) so a cached
    decision serves every route of the API.
    """
    resource = method_arn
    if effect == 'Allow':
        parts = method_arn.split('/')
        if len(parts) >= 2:
            resource = '/'.join(parts[:2]) + '/*'

    return {
        'principalId': principal_id,
        'policyDocument': {
            'Version': '2012-10-17',
            'Statement': [
                {
                    'Action': 'execute-api:Invoke',
                    'Effect': effect,
                    'Resource': resource,
                }
            ],
        },
        'context': context,
    }
