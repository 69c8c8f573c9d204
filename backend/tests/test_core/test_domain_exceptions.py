"""Tests for the domain exception hierarchy."""

import pytest

from core.correlation import set_correlation_id
from models.exceptions import (
    AuthenticationException,
    ContentNotFoundException,
    DomainException,
    GroupPermissionDeniedException,
    InvalidActionTypeException,
    InvalidContentTypeException,
    NotFoundException,
    PermissionDeniedException,
    SelfFollowException,
    UnavailableException,
    ValidationException,
    VisibilityDeniedException,
)


class TestCorrelationId:
    """Exceptions carry the request's correlation ID into error responses."""

    def setup_method(self) -> None:
        set_correlation_id("")

    def test_uses_context_correlation_id(self) -> None:
        set_correlation_id("req-42")

        assert ContentNotFoundException("News not found").correlation_id == "req-42"

    def test_generates_id_outside_a_request(self) -> None:
        first = DomainException("Error 1")
        second = DomainException("Error 2")

        assert len(first.correlation_id) == 8
        assert all(c in "0123456789abcdef" for c in first.correlation_id)
        assert first.correlation_id != second.correlation_id

    def test_explicit_id_overrides_context(self) -> None:
        set_correlation_id("req-42")

        exc = NotFoundException("Missing", correlation_id="job-7")

        assert exc.correlation_id == "job-7"


class TestHierarchy:
    """Handlers in main.py dispatch on these base classes."""

    @pytest.mark.parametrize(
        "exc, base",
        [
            (InvalidContentTypeException("Poll"), ValidationException),
            (InvalidActionTypeException("boost"), ValidationException),
            (SelfFollowException(), ValidationException),
            (VisibilityDeniedException("blocked", "Not available"), PermissionDeniedException),
            (GroupPermissionDeniedException("CAN_POST"), PermissionDeniedException),
            (UnavailableException(), DomainException),
            (AuthenticationException("Bad token"), DomainException),
        ],
    )
    def test_subclasses(self, exc: DomainException, base: type) -> None:
        assert isinstance(exc, base)

    def test_message_preserved(self) -> None:
        exc = NotFoundException("User not found")

        assert exc.message == "User not found"
        assert str(exc) == "User not found"


class TestDetails:
    def test_visibility_denied_keeps_reason(self) -> None:
        exc = VisibilityDeniedException("club-members-only", "Club members only")

        assert exc.reason == "club-members-only"
        assert exc.message == "Club members only"

    def test_invalid_action_includes_reason(self) -> None:
        exc = InvalidActionTypeException("share", "shares cannot be undone")

        assert exc.action == "share"
        assert exc.message == "Invalid action type: share (shares cannot be undone)"

    def test_invalid_content_type(self) -> None:
        exc = InvalidContentTypeException("Poll")

        assert exc.content_type == "Poll"
        assert exc.message == "Invalid content type: Poll"

    def test_group_permission_names_permission(self) -> None:
        exc = GroupPermissionDeniedException("CAN_COMMENT")

        assert exc.permission == "CAN_COMMENT"
        assert "CAN_COMMENT" in exc.message

    def test_unavailable_default_message(self) -> None:
        assert "retry" in UnavailableException().message
