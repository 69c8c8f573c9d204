"""
Sentry SDK configuration.

Enabled only when SENTRY_DSN is set. Member emails, handles, cookies and
bearer tokens are scrubbed before events leave the process.
"""

from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

HEALTH_PATHS = {"/health", "/api/health"}

# User fields that identify a member beyond their numeric ID
USER_PII_FIELDS = ("email", "username", "unique_id")

DEFAULT_TRACE_RATE = 0.2
AUTH_TRACE_RATE = 0.5
ENGAGEMENT_WRITE_TRACE_RATE = 0.3

SLOW_TRANSACTION_SECONDS = 1.0
MODERATE_TRANSACTION_SECONDS = 0.5


def _before_send(event: Event, hint: Hint) -> Event | None:
    """
    Scrub PII before sending to Sentry.

    Only the user ID is kept; the IP address is left to Sentry to anonymize.
    """
    user = event.get("user")
    if user:
        for field in USER_PII_FIELDS:
            user.pop(field, None)
        if "ip_address" in user:
            user["ip_address"] = "{{auto}}"

    request = event.get("request")
    if isinstance(request, dict):
        request.pop("cookies", None)
        headers = request.get("headers")
        if isinstance(headers, dict) and "Authorization" in headers:
            headers["Authorization"] = "[Filtered]"

    return event


def _transaction_duration(event: Event) -> float | None:
    start = event.get("start_timestamp")
    end = event.get("timestamp")
    # ISO string timestamps are left unmeasured
    if isinstance(start, (int, float)) and isinstance(end, (int, float)):
        return float(end) - float(start)
    return None


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    """Drop health check transactions and tag slow ones."""
    name = event.get("transaction", "")
    if name.removeprefix("GET ") in HEALTH_PATHS:
        return None

    duration = _transaction_duration(event)
    if duration is not None:
        if duration > SLOW_TRANSACTION_SECONDS:
            event.setdefault("tags", {})["performance"] = "slow"
        elif duration > MODERATE_TRANSACTION_SECONDS:
            event.setdefault("tags", {})["performance"] = "moderate"

    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """
    Pick a trace sample rate per request.

    Login/registration and engagement writes are sampled more heavily than
    reads; health checks are never traced.
    """
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    asgi_scope = sampling_context.get("asgi_scope", {})
    path = asgi_scope.get("path", "")
    method = asgi_scope.get("method", "GET")

    if path in HEALTH_PATHS:
        return 0.0
    if path.startswith("/api/auth"):
        return AUTH_TRACE_RATE
    if path.startswith("/api/engagement") and method == "POST":
        return ENGAGEMENT_WRITE_TRACE_RATE
    return DEFAULT_TRACE_RATE


def init_sentry(
    dsn: str | None,
    environment: str = "development",
    release: str = "unknown",
) -> bool:
    """
    Initialize Sentry with the FastAPI, SQLAlchemy and Loguru integrations.

    Call this BEFORE creating the FastAPI app instance.

    Returns:
        True if Sentry was initialized, False when no DSN is configured
    """
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
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
        ignore_errors=[KeyboardInterrupt, SystemExit],
    )
    return True
