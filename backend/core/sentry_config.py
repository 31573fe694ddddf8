"""
Sentry SDK configuration.

Implements:
- Environment-based initialization (disabled without SENTRY_DSN)
- PII scrubbing: only the user ID is kept
- Endpoint-aware trace sampling
- Loguru integration
"""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

HEALTH_PATHS = ("/health", "/api/health")
WRITE_METHODS = ("POST", "PUT", "PATCH", "DELETE")

# Prefixes whose requests change moderation or account state
STATE_CHANGING_PREFIXES = ("/api/admin", "/api/auth", "/api/reports")


def _before_send(event: Event, hint: Hint) -> Event | None:
    """
    Scrub PII before sending to Sentry.

    Removes email/username from the user context, anonymizes the IP,
    and drops cookies and the Authorization header from request data.
    """
    user = event.get("user")
    if user:
        user.pop("email", None)
        user.pop("username", None)
        if "ip_address" in user:
            user["ip_address"] = "{{auto}}"

    request = event.get("request")
    if request and isinstance(request, dict):
        request.pop("cookies", None)
        headers = request.get("headers")
        if isinstance(headers, dict) and "Authorization" in headers:
            headers["Authorization"] = "[Filtered]"

    return event


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    """Drop health check transactions."""
    transaction_name = event.get("transaction", "")
    if any(transaction_name.endswith(path) for path in HEALTH_PATHS):
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """
    Dynamic sampling based on endpoint and method.

    - Moderation, auth and report traffic: 50%
    - Library writes: 30%
    - Library reads and activity history: 10%
    - Everything else: 20%
    """
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    asgi_scope = sampling_context.get("asgi_scope", {})
    path = asgi_scope.get("path", "")
    method = asgi_scope.get("method", "GET")

    if path in HEALTH_PATHS:
        return 0.0

    if path.startswith(STATE_CHANGING_PREFIXES):
        return 0.5

    if path.startswith("/api/library"):
        return 0.3 if method in WRITE_METHODS else 0.1

    if path.startswith("/api/users/me/activity"):
        return 0.1

    return 0.2


def init_sentry() -> None:
    """
    Initialize Sentry SDK with FastAPI integration.

    Call this BEFORE creating the FastAPI app instance.
    Sentry is disabled if SENTRY_DSN environment variable is not set.
    """
    dsn = os.getenv("SENTRY_DSN")

    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("SENTRY_RELEASE", "unknown"),
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoguruIntegration(),
        ],
        traces_sampler=_traces_sampler,
        sample_rate=1.0,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        ignore_errors=[
            KeyboardInterrupt,
            SystemExit,
        ],
    )
