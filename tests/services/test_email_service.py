"""
Tests for EmailService (Resend API mocked).
"""

from datetime import datetime, timezone
from unittest.mock import patch

from adappeal.core.models import Decision, RunSummary
from adappeal.services.email_service import EmailService


T0 = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


class TestEmailService:
    def test_disabled_without_api_key(self):
        with patch("adappeal.services.email_service.Config.RESEND_API_KEY", ""):
            service = EmailService(api_key=None)

        assert service.enabled is False
        result = service.send_email("ops@example.com", "Subject", "<p>hi</p>")
        assert result.success is False
        assert "disabled" in result.error

    @patch("adappeal.services.email_service.resend.Emails.send")
    def test_sends_html_and_text(self, mock_send):
        mock_send.return_value = {"id": "msg-123"}
        service = EmailService(api_key="re_test", from_email="bot@example.com")

        result = service.send_email("ops@example.com", "Report", "<pre>x</pre>", text_body="x")

        assert result.success is True
        assert result.message_id == "msg-123"
        mock_send.assert_called_once_with({
            "from": "bot@example.com",
            "to": ["ops@example.com"],
            "subject": "Report",
            "html": "<pre>x</pre>",
            "text": "x",
        })

    @patch("adappeal.services.email_service.resend.Emails.send")
    def test_send_report_renders_summary(self, mock_send):
        mock_send.return_value = {"id": "msg-456"}
        summary = RunSummary(started_at=T0, creatives_scanned=3)
        summary.outcome_counts[Decision.APPEAL_SUBMITTED] = 2
        service = EmailService(api_key="re_test", from_email="bot@example.com")

        result = service.send_report(summary, "ops@example.com", generated_at=T0)

        assert result.success is True
        params = mock_send.call_args.args[0]
        assert params["to"] == ["ops@example.com"]
        assert params["subject"] == "Google Ads Appeal Report - 2 appeal(s) submitted"
        assert "Total Scannable Ads in Account: 3" in params["text"]
        assert params["html"].strip().startswith("<!DOCTYPE html>")
        assert "2026-10-18 09:30:00 UTC" in params["text"]

    def test_send_report_when_disabled(self):
        with patch("adappeal.services.email_service.Config.RESEND_API_KEY", ""):
            service = EmailService(api_key=None)

        result = service.send_report(RunSummary(started_at=T0), "ops@example.com")

        assert result.success is False

    @patch("adappeal.services.email_service.resend.Emails.send")
    def test_send_error_returned_not_raised(self, mock_send):
        mock_send.side_effect = RuntimeError("rate limited")
        service = EmailService(api_key="re_test")

        result = service.send_email("ops@example.com", "Report", "<pre>x</pre>")

        assert result.success is False
        assert result.error == "rate limited"
