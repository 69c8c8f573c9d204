"""Tests for Sentry SDK configuration with privacy-compliant settings."""

from typing import Any
from unittest.mock import patch

import pytest

from core.sentry_config import (
    _before_send,
    _before_send_transaction,
    _traces_sampler,
    init_sentry,
)


class TestBeforeSendPIIScrubbing:
    """Tests for PII scrubbing in _before_send."""

    @pytest.mark.parametrize("field", ["email", "username", "unique_id"])
    def test_scrubs_identifying_user_fields(self, field: str) -> None:
        event: dict[str, Any] = {"user": {"id": "7", field: "jdoe"}}
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["user"] == {"id": "7"}  # type: ignore[typeddict-item]

    def test_anonymizes_ip_address(self) -> None:
        event: dict[str, Any] = {"user": {"id": "7", "ip_address": "10.0.0.8"}}
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result["user"]["ip_address"] == "{{auto}}"  # type: ignore[index]

    def test_scrubs_request_credentials(self) -> None:
        """Cookies are dropped and the bearer token is filtered."""
        event: dict[str, Any] = {
            "request": {
                "url": "/api/engagement/like/News/1",
                "cookies": {"session": "secret"},
                "headers": {
                    "Authorization": "Bearer secret_token_123",
                    "Content-Type": "application/json",
                },
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        request = result["request"]  # type: ignore[index]
        assert "cookies" not in request
        assert request["headers"]["Authorization"] == "[Filtered]"
        assert request["headers"]["Content-Type"] == "application/json"

    def test_event_without_user_or_request(self) -> None:
        event: dict[str, Any] = {"message": "Test error"}
        assert _before_send(event, {}) == {"message": "Test error"}  # type: ignore[arg-type]


class TestBeforeSendTransaction:
    """Tests for transaction filtering."""

    @pytest.mark.parametrize(
        "path",
        ["/health", "/api/health", "GET /health", "GET /api/health"],
    )
    def test_filters_health_check_paths(self, path: str) -> None:
        """Health check transactions should be filtered out."""
        event: dict[str, Any] = {"transaction": path}
        result = _before_send_transaction(event, {})  # type: ignore[arg-type]
        assert result is None

    def test_allows_non_health_check_paths(self) -> None:
        """Non-health-check transactions should pass through."""
        event: dict[str, Any] = {"transaction": "/api/content/News"}
        result = _before_send_transaction(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["transaction"] == "/api/content/News"  # type: ignore[typeddict-item]


class TestTracesSampler:
    """Tests for dynamic trace sampling."""

    def test_never_samples_health_checks(self) -> None:
        """Health check endpoints should never be sampled."""
        context: dict[str, Any] = {"asgi_scope": {"path": "/health"}}
        assert _traces_sampler(context) == 0.0

        context = {"asgi_scope": {"path": "/api/health"}}
        assert _traces_sampler(context) == 0.0

    def test_engagement_writes_sampled_more(self) -> None:
        """Engagement writes should have 30% sampling, reads the default."""
        context: dict[str, Any] = {
            "asgi_scope": {"path": "/api/engagement/like/News/1", "method": "POST"}
        }
        assert _traces_sampler(context) == 0.3

        context = {"asgi_scope": {"path": "/api/engagement/stats/News/1"}}
        assert _traces_sampler(context) == 0.2

    def test_higher_sampling_for_auth(self) -> None:
        """Auth endpoints should have 50% sampling."""
        context: dict[str, Any] = {"asgi_scope": {"path": "/api/auth/login"}}
        assert _traces_sampler(context) == 0.5

    def test_default_sampling_rate(self) -> None:
        """Default sampling rate should be 20%."""
        context: dict[str, Any] = {"asgi_scope": {"path": "/api/content/News"}}
        assert _traces_sampler(context) == 0.2

    def test_respects_parent_sampling(self) -> None:
        """Should always sample if parent was sampled."""
        context: dict[str, Any] = {
            "parent_sampled": True,
            "asgi_scope": {"path": "/api/content/News"},
        }
        assert _traces_sampler(context) == 1.0

    def test_handles_missing_asgi_scope(self) -> None:
        """Should handle missing ASGI scope gracefully."""
        context: dict[str, Any] = {}
        # Default rate when path can't be determined
        assert _traces_sampler(context) == 0.2


class TestTransactionTiming:
    def test_tags_slow_transactions(self) -> None:
        event: dict[str, Any] = {
            "transaction": "/api/content/News",
            "start_timestamp": 100.0,
            "timestamp": 101.5,
        }
        result = _before_send_transaction(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["tags"]["performance"] == "slow"  # type: ignore[typeddict-item]

    def test_tags_moderate_transactions(self) -> None:
        event: dict[str, Any] = {
            "transaction": "/api/content/News",
            "start_timestamp": 100.0,
            "timestamp": 100.7,
        }
        result = _before_send_transaction(event, {})  # type: ignore[arg-type]
        assert result["tags"]["performance"] == "moderate"  # type: ignore[index]

    def test_string_timestamps_are_not_tagged(self) -> None:
        event: dict[str, Any] = {
            "transaction": "/api/content/News",
            "start_timestamp": "2026-01-01T00:00:00Z",
            "timestamp": "2026-01-01T00:00:05Z",
        }
        result = _before_send_transaction(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert "tags" not in result


class TestInitSentry:
    """Tests for Sentry initialization."""

    def test_without_dsn_does_nothing(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            assert init_sentry(None) is False
            assert init_sentry("") is False
        mock_init.assert_not_called()

    def test_with_dsn_initializes(self) -> None:
        test_dsn = "https://test@o0.ingest.sentry.io/0"
        with patch("sentry_sdk.init") as mock_init:
            assert init_sentry(test_dsn, "production", "1.2.3") is True

        call_kwargs = mock_init.call_args.kwargs
        assert call_kwargs["dsn"] == test_dsn
        assert call_kwargs["environment"] == "production"
        assert call_kwargs["release"] == "1.2.3"
        assert call_kwargs["send_default_pii"] is False

    def test_defaults(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            init_sentry("https://test@o0.ingest.sentry.io/0")

        call_kwargs = mock_init.call_args.kwargs
        assert call_kwargs["environment"] == "development"
        assert call_kwargs["release"] == "unknown"
