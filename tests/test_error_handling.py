"""Tests for error classification and error statistics."""

import pytest

from mcp_server_repo.error_handling import (
    ConfigurationError,
    ErrorKind,
    OperationContext,
    RepoToolError,
    ToolValidationError,
    UnsupportedActionError,
    UpstreamError,
    classify_status,
    get_error_stats,
    record_error_metric,
    reset_error_stats,
    upstream_message,
)


class TestClassifyStatus:
    @pytest.mark.parametrize(
        "status,expected",
        [
            (200, None),
            (204, None),
            (304, None),
            (400, ErrorKind.CLIENT),
            (401, ErrorKind.AUTH),
            (403, ErrorKind.AUTH),
            (404, ErrorKind.NOT_FOUND),
            (409, ErrorKind.CLIENT),
            (422, ErrorKind.CLIENT),
            (429, ErrorKind.CLIENT),
            (500, ErrorKind.SERVER),
            (503, ErrorKind.SERVER),
        ],
    )
    def test_default_context(self, status, expected):
        assert classify_status(status) == expected

    def test_rate_limit_only_for_social_posts(self):
        assert classify_status(429, OperationContext.SOCIAL_POST) == ErrorKind.RATE_LIMITED
        assert classify_status(429, OperationContext.EXISTENCE_CHECK) == ErrorKind.CLIENT

    def test_not_found_independent_of_context(self):
        for context in OperationContext:
            assert classify_status(404, context) == ErrorKind.NOT_FOUND


class TestUpstreamMessage:
    @pytest.mark.parametrize(
        "data,expected",
        [
            ({"message": "Bad credentials"}, "Bad credentials"),
            ({"detail": "Too long"}, "Too long"),
            ({"title": "Forbidden"}, "Forbidden"),
            ({"errors": [{"message": "name already exists"}]}, "name already exists"),
            ({"errors": ["plain"]}, "plain"),
            ("  raw text  ", "raw text"),
            ({}, "fallback"),
            (None, "fallback"),
            ("", "fallback"),
        ],
    )
    def test_message_extraction(self, data, expected):
        assert upstream_message(data, "fallback") == expected


class TestErrorTypes:
    def test_kinds(self):
        assert ToolValidationError("bad").kind == ErrorKind.VALIDATION
        assert UnsupportedActionError("x").kind == ErrorKind.UNSUPPORTED_ACTION
        assert ConfigurationError("missing").kind == ErrorKind.CONFIGURATION
        assert RepoToolError("boom").kind == ErrorKind.SERVER

    def test_unsupported_action_message(self):
        error = UnsupportedActionError("fly")

        assert str(error) == "Unsupported action: fly"
        assert error.action == "fly"

    def test_configuration_error_keys(self):
        error = ConfigurationError("Missing environment variables: A", keys=["A"])

        assert error.keys == ["A"]
        assert ConfigurationError("x").keys == []

    def test_upstream_error_fields(self):
        error = UpstreamError("failed", kind=ErrorKind.AUTH, status=401, operation="op")

        assert isinstance(error, RepoToolError)
        assert (error.kind, error.status, error.operation) == (ErrorKind.AUTH, 401, "op")


class TestErrorStats:
    def test_record_and_reset(self):
        record_error_metric(ToolValidationError("bad"), action="createIssue")
        record_error_metric(UpstreamError("x", ErrorKind.NOT_FOUND, 404), action="createIssue")
        record_error_metric(UnsupportedActionError("nope"))

        stats = get_error_stats()
        assert stats["total_errors"] == 3
        assert stats["errors_by_kind"]["validation"] == 1
        assert stats["errors_by_kind"]["not_found"] == 1
        assert stats["errors_by_action"] == {"createIssue": 2}

        reset_error_stats()

        assert get_error_stats()["total_errors"] == 0
        assert get_error_stats()["errors_by_action"] == {}

    def test_unsupported_actions_not_bucketed_by_name(self):
        record_error_metric(UnsupportedActionError("whatever"), action="whatever")

        stats = get_error_stats()
        assert stats["errors_by_kind"]["unsupported_action"] == 1
        assert stats["errors_by_action"] == {}

    def test_stats_are_a_copy(self):
        stats = get_error_stats()
        stats["errors_by_kind"]["auth"] = 99

        assert get_error_stats()["errors_by_kind"]["auth"] == 0
