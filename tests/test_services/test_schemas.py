"""
Tests for GitHub payload schemas.
"""

import pytest


class TestClassifyPayload:
    """Tests for payload shape detection."""

    def test_kinds(self, run_payload):
        from apkbuilder.services.github.schemas import PayloadKind, classify_payload

        assert classify_payload({"workflow_runs": []}) is PayloadKind.RUN_LIST
        assert classify_payload(run_payload()) is PayloadKind.SINGLE_RUN
        assert classify_payload({"type": "file", "sha": "a"}) is PayloadKind.FILE_CONTENT
        assert classify_payload({"content": {}, "commit": {}}) is PayloadKind.CONTENT_UPDATE
        assert classify_payload({"message": "Bad credentials"}) is PayloadKind.ERROR

    @pytest.mark.parametrize("payload", [[], "text", None, {"unexpected": 1}])
    def test_unknown_shape(self, payload):
        from apkbuilder.core.exceptions import ParseError
        from apkbuilder.services.github.schemas import classify_payload

        with pytest.raises(ParseError):
            classify_payload(payload)


class TestWorkflowRunStatus:
    """Tests for run decoding."""

    @pytest.mark.parametrize("raw", ["requested", "waiting", "pending", "queued"])
    def test_pre_execution_states_are_queued(self, run_payload, raw):
        from apkbuilder.services.github.schemas import RunStatus, WorkflowRunStatus

        run = WorkflowRunStatus.from_run(run_payload(raw))

        assert run.status is RunStatus.QUEUED
        assert run.is_active
        assert run.emoji == "⏱️"

    def test_conclusion_ignored_until_completed(self, run_payload):
        from apkbuilder.services.github.schemas import WorkflowRunStatus

        run = WorkflowRunStatus.from_run(run_payload("in_progress", conclusion="success"))

        assert run.conclusion is None
        assert not run.is_terminal

    def test_successful_run(self, run_payload):
        from apkbuilder.services.github.schemas import Conclusion, WorkflowRunStatus

        run = WorkflowRunStatus.from_run(run_payload("completed", "success"))

        assert run.conclusion is Conclusion.SUCCESS
        assert run.is_terminal
        assert run.is_successful
        assert run.emoji == "✅"

    def test_completed_without_conclusion(self, run_payload):
        from apkbuilder.services.github.schemas import WorkflowRunStatus

        run = WorkflowRunStatus.from_run(run_payload("completed", None))

        assert run.is_terminal
        assert not run.is_successful
        assert run.emoji == "⚠️"

    @pytest.mark.parametrize(
        "conclusion,emoji",
        [("failure", "❌"), ("cancelled", "🚫"), ("timed_out", "⚠️"), ("startup_failure", "⚠️")],
    )
    def test_unsuccessful_conclusions(self, run_payload, conclusion, emoji):
        from apkbuilder.services.github.schemas import WorkflowRunStatus

        run = WorkflowRunStatus.from_run(run_payload("completed", conclusion))

        assert not run.is_successful
        assert run.emoji == emoji

    def test_unknown_status(self, run_payload):
        from apkbuilder.core.exceptions import ParseError
        from apkbuilder.services.github.schemas import WorkflowRunStatus

        with pytest.raises(ParseError):
            WorkflowRunStatus.from_run(run_payload("exploded"))

    def test_missing_id(self):
        from apkbuilder.core.exceptions import ParseError
        from apkbuilder.services.github.schemas import WorkflowRunStatus

        with pytest.raises(ParseError):
            WorkflowRunStatus.from_run({"status": "queued"})

    def test_summary(self, run_payload):
        from apkbuilder.services.github.schemas import WorkflowRunStatus

        summary = WorkflowRunStatus.from_run(run_payload("in_progress")).summary()

        assert "Current Status: in_progress" in summary
        assert "Run #7 on branch main" in summary
        assert "Mar 05, 14:09" in summary

    def test_notification_text(self, run_payload):
        from apkbuilder.services.github.schemas import WorkflowRunStatus

        text = WorkflowRunStatus.from_run(run_payload("completed", "failure")).notification_text("acme/app")

        assert "<b>BUILD FAILED!</b>" in text
        assert "<code>acme/app</code>" in text
        assert "Created: Mar 05, 14:07" in text
        assert "https://github.com/acme/app/actions/runs/1001" in text


class TestDecodeLatestRun:
    def test_first_run_of_list(self, run_payload):
        from apkbuilder.services.github.schemas import decode_latest_run

        payload = {"workflow_runs": [run_payload(run_id=2), run_payload(run_id=1)]}

        assert decode_latest_run(payload).run_id == "2"

    def test_empty_list(self):
        from apkbuilder.services.github.schemas import decode_latest_run

        assert decode_latest_run({"total_count": 0, "workflow_runs": []}) is None

    def test_error_payload(self):
        from apkbuilder.core.exceptions import ParseError
        from apkbuilder.services.github.schemas import decode_latest_run

        with pytest.raises(ParseError):
            decode_latest_run({"message": "Bad credentials"})

    def test_wrong_kind(self):
        from apkbuilder.core.exceptions import ParseError
        from apkbuilder.services.github.schemas import decode_latest_run

        with pytest.raises(ParseError):
            decode_latest_run({"type": "file", "sha": "abc"})


class TestFormatTimestamp:
    def test_format(self):
        from apkbuilder.services.github.schemas import format_timestamp

        assert format_timestamp("2024-12-31T23:59:59Z") == "Dec 31, 23:59"
        assert format_timestamp("2024-01-02T03:04:05+00:00") == "Jan 02, 03:04"

    @pytest.mark.parametrize("value", ["yesterday", "", None])
    def test_malformed_passes_through(self, value):
        from apkbuilder.services.github.schemas import format_timestamp

        assert format_timestamp(value) == value


class TestParseTimestamp:
    def test_parse(self):
        from datetime import datetime, timezone
        from apkbuilder.services.github.schemas import parse_timestamp

        expected = datetime(2024, 3, 5, 14, 7, tzinfo=timezone.utc)
        assert parse_timestamp("2024-03-05T14:07:00Z") == expected
        assert parse_timestamp("2024-03-05T14:07:00") == expected

    @pytest.mark.parametrize("value", ["yesterday", "", None])
    def test_unparseable(self, value):
        from apkbuilder.services.github.schemas import parse_timestamp

        assert parse_timestamp(value) is None

    def test_run_created(self, run_payload):
        from datetime import datetime, timezone
        from apkbuilder.services.github.schemas import WorkflowRunStatus

        run = WorkflowRunStatus.from_run(run_payload())

        assert run.created == datetime(2024, 3, 5, 14, 7, tzinfo=timezone.utc)
