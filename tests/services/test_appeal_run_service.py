"""
Tests for AppealRunService and report delivery.

Tests: end-to-end scenarios per outcome, idempotence across runs,
failure isolation, no-topic short-circuit, creative source failures,
counters, and email suppression when nothing was appealed.
"""

import pytest
from unittest.mock import MagicMock
from datetime import datetime, timezone

from adappeal.core.exceptions import AppealStoreError, CreativeSourceError, GoogleAdsApiError
from adappeal.core.models import (
    Channel,
    Creative,
    Decision,
    PolicyTopicEntry,
    SubmissionErrorKind,
)
from adappeal.services.appeal_run_service import AppealRunService, deliver_report
from adappeal.services.appeal_store import InMemoryAppealStore
from adappeal.services.appeal_submitter import AppealGateway, AppealSubmitter, RemoteCreative
from adappeal.services.email_service import EmailResult


T0 = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def _creative(creative_id, channel=Channel.SEARCH, topics=None, ad_type="RESPONSIVE_SEARCH_AD"):
    return Creative(
        id=creative_id,
        type=ad_type,
        channel=channel,
        group_id="100",
        campaign_name="Brand",
        group_name="Core",
        approval_status="APPROVED_LIMITED",
        policy_topics=topics or [],
    )


def _topic(topic, appealable=True, under_review=False):
    return PolicyTopicEntry(topic=topic, appealable=appealable, under_review=under_review)


def _gateway():
    gw = MagicMock(spec=AppealGateway)
    gw.find_creative.side_effect = lambda group_id, creative_id: RemoteCreative(group_id, creative_id)
    return gw


def _service(store, gateway):
    submitter = AppealSubmitter(gateway=gateway, store=store, clock=lambda: T0)
    return AppealRunService(
        store=store,
        submitter=submitter,
        justification="DISPUTE_POLICY_DECISION",
        clock=lambda: T0,
    )


@pytest.fixture
def store():
    return InMemoryAppealStore()


@pytest.fixture
def gateway():
    return _gateway()


# ============================================================================
# Scenarios
# ============================================================================

class TestScenarios:
    def test_eligible_search_topic_is_appealed_and_recorded(self, store, gateway):
        creative = _creative("A", topics=[_topic("MISLEADING_CLAIM")])

        summary = _service(store, gateway).run([creative])

        assert summary.appeals_submitted_count == 1
        assert summary.appeals_submitted[0].decision == Decision.APPEAL_SUBMITTED
        assert "A::MISLEADING_CLAIM" in store
        gateway.appeal_policy.assert_called_once()

    def test_second_run_is_already_appealed_without_remote_call(self, store, gateway):
        creative = _creative("A", topics=[_topic("MISLEADING_CLAIM")])
        _service(store, gateway).run([creative])

        second_gateway = _gateway()
        summary = _service(store, second_gateway).run([creative])

        assert summary.count(Decision.ALREADY_APPEALED) == 1
        assert summary.appeals_submitted_count == 0
        second_gateway.find_creative.assert_not_called()
        second_gateway.appeal_policy.assert_not_called()

    def test_many_runs_never_appeal_twice(self, store, gateway):
        creative = _creative("A", topics=[_topic("MISLEADING_CLAIM")])
        for _ in range(5):
            _service(store, gateway).run([creative])
        assert gateway.appeal_policy.call_count == 1

    def test_pmax_is_not_appealable_and_flagged(self, store, gateway):
        creative = _creative("B", channel=Channel.PERFORMANCE_MAX, topics=[_topic("X")])

        summary = _service(store, gateway).run([creative])

        assert summary.count(Decision.NOT_APPEALABLE) == 1
        assert len(summary.manual_review) == 1
        assert summary.manual_review[0].manual_review_required is True
        gateway.appeal_policy.assert_not_called()

    @pytest.mark.parametrize("channel", list(Channel))
    def test_under_review_on_any_channel(self, store, gateway, channel):
        creative = _creative("C", channel=channel, topics=[_topic("Y", under_review=True)])

        summary = _service(store, gateway).run([creative])

        assert summary.count(Decision.UNDER_REVIEW) == 1
        assert summary.under_review[0].entry.topic == "Y"

    def test_creative_without_topics_is_skipped(self, store, gateway):
        creative = _creative("D", topics=[])

        summary = _service(store, gateway).run([creative])

        assert summary.creatives_scanned == 1
        assert summary.creatives_checked == 0
        assert summary.topics_reviewed == 0
        assert summary.skipped_creatives == [creative]
        assert sum(summary.outcome_counts.values()) == 0
        assert len(summary.review_log) == 1
        assert "No policy topics" in summary.review_log[0]


# ============================================================================
# Failure handling
# ============================================================================

class TestFailureIsolation:
    def test_failed_appeal_does_not_stop_later_topics(self, store):
        gateway = _gateway()
        gateway.appeal_policy.side_effect = [GoogleAdsApiError("quota exceeded"), None]
        creatives = [
            _creative("A", topics=[_topic("X"), _topic("Y")]),
            _creative("B", topics=[_topic("Z", appealable=False)]),
        ]

        summary = _service(store, gateway).run(creatives)

        assert summary.count(Decision.APPEAL_FAILED) == 1
        assert summary.appeal_failures[0].error == "quota exceeded"
        assert summary.appeals_submitted_count == 1
        assert summary.count(Decision.NOT_APPEALABLE) == 1
        assert "A::X" not in store
        assert "A::Y" in store

    def test_failed_pair_is_retried_next_run(self, store):
        creative = _creative("A", topics=[_topic("X")])
        failing = _gateway()
        failing.appeal_policy.side_effect = GoogleAdsApiError("500")
        _service(store, failing).run([creative])

        retry_gateway = _gateway()
        summary = _service(store, retry_gateway).run([creative])

        assert summary.appeals_submitted_count == 1
        retry_gateway.appeal_policy.assert_called_once()

    def test_lookup_anomaly_recorded_as_failure(self, store, gateway):
        gateway.find_creative.side_effect = None
        gateway.find_creative.return_value = None

        summary = _service(store, gateway).run([_creative("A", topics=[_topic("X")])])

        assert summary.appeal_failures[0].error_kind == SubmissionErrorKind.LOOKUP_ANOMALY
        assert any("Failed to locate ad" in line for line in summary.review_log)

    def test_store_write_failure_is_surfaced_as_anomaly(self, gateway):
        store = InMemoryAppealStore()
        store.set = MagicMock(side_effect=AppealStoreError("disk full"))

        summary = _service(store, gateway).run([_creative("A", topics=[_topic("X")])])

        assert summary.count(Decision.APPEAL_FAILED) == 1
        assert summary.appeals_submitted_count == 0
        assert len(summary.store_write_failures) == 1
        assert len(summary.anomalies) == 1
        assert "not recorded" in summary.anomalies[0]

    def test_store_read_failure_skips_topic_and_continues(self, gateway):
        store = InMemoryAppealStore()
        real_get = store.get

        def get(key):
            if key == "bad::X":
                raise AppealStoreError("read timeout")
            return real_get(key)

        store.get = MagicMock(side_effect=get)

        summary = _service(store, gateway).run([
            _creative("bad", topics=[_topic("X")]),
            _creative("good", topics=[_topic("X")]),
        ])

        failure = summary.appeal_failures[0]
        assert failure.creative.id == "bad"
        assert failure.error_kind == SubmissionErrorKind.STORE_READ_FAILURE
        assert failure.error == "read timeout"
        assert "bad::X" not in store
        assert "good::X" in store
        assert summary.appeals_submitted_count == 1
        gateway.appeal_policy.assert_called_once()
        assert len(summary.anomalies) == 1
        assert "history unreadable" in summary.anomalies[0]

    def test_store_read_failure_keeps_manual_review_flag(self, gateway):
        store = MagicMock()
        store.get.side_effect = AppealStoreError("unreachable")

        summary = _service(store, gateway).run([
            _creative("P", channel=Channel.PERFORMANCE_MAX, topics=[_topic("X")]),
        ])

        assert summary.count(Decision.APPEAL_FAILED) == 1
        assert [o.creative.id for o in summary.manual_review] == ["P"]
        gateway.appeal_policy.assert_not_called()

    def test_ad_with_only_failed_topics_is_logged_as_no_action(self, store):
        gateway = _gateway()
        gateway.appeal_policy.side_effect = GoogleAdsApiError("quota exceeded")

        summary = _service(store, gateway).run([_creative("A", topics=[_topic("X"), _topic("Y")])])

        assert summary.review_log[-1].startswith("⚠️ Skipped (No action taken): Ad A")

    def test_ad_with_a_settled_topic_is_not_logged_as_no_action(self, store):
        gateway = _gateway()
        gateway.appeal_policy.side_effect = GoogleAdsApiError("quota exceeded")

        summary = _service(store, gateway).run([
            _creative("A", topics=[_topic("X"), _topic("Y", appealable=False)]),
        ])

        assert not any("No action taken" in line for line in summary.review_log)


class TestCreativeSourceFailure:
    def test_source_failing_upfront_is_fatal(self, store, gateway):
        def broken_source():
            raise GoogleAdsApiError("401 - UNAUTHENTICATED")
            yield  # pragma: no cover

        with pytest.raises(CreativeSourceError, match="UNAUTHENTICATED"):
            _service(store, gateway).run(broken_source())

    def test_source_failing_mid_run_is_fatal(self, store, gateway):
        def flaky_source():
            yield _creative("A", topics=[_topic("X")])
            raise ConnectionError("reset by peer")

        with pytest.raises(CreativeSourceError, match="after 1 creative") as exc_info:
            _service(store, gateway).run(flaky_source())
        # Work done before the failure is still recorded and reportable
        assert "A::X" in store
        partial = exc_info.value.summary
        assert partial is not None
        assert partial.creatives_scanned == 1
        assert partial.appeals_submitted_count == 1
        assert partial.appeals_submitted[0].creative.id == "A"

    def test_source_raising_its_own_error_gets_the_partial_summary(self, store, gateway):
        def export_source():
            yield _creative("A", topics=[_topic("X")])
            raise CreativeSourceError("export truncated")

        with pytest.raises(CreativeSourceError, match="export truncated") as exc_info:
            _service(store, gateway).run(export_source())
        assert exc_info.value.summary.appeals_submitted_count == 1

    def test_non_iterable_source(self, store, gateway):
        with pytest.raises(CreativeSourceError):
            _service(store, gateway).run(None)


# ============================================================================
# Counters
# ============================================================================

class TestCounters:
    def test_counts_and_type_distribution(self, store, gateway):
        store.set("E::OLD", T0)
        creatives = [
            _creative("A", topics=[_topic("X"), _topic("Y", under_review=True)]),
            _creative("D", topics=[], ad_type="RESPONSIVE_DISPLAY_AD"),
            _creative("E", channel=Channel.MULTI_CHANNEL, topics=[_topic("OLD")]),
        ]

        summary = _service(store, gateway).run(creatives)

        assert summary.creatives_scanned == 3
        assert summary.creatives_checked == 2
        assert summary.topics_reviewed == 3
        assert summary.count(Decision.APPEAL_SUBMITTED) == 1
        assert summary.count(Decision.UNDER_REVIEW) == 1
        assert summary.count(Decision.ALREADY_APPEALED) == 1
        assert summary.type_counts == {"RESPONSIVE_SEARCH_AD": 2, "RESPONSIVE_DISPLAY_AD": 1}
        assert [o.creative.id for o in summary.manual_review] == ["E"]
        assert summary.started_at == T0

    def test_review_log_in_processing_order(self, store, gateway):
        creatives = [
            _creative("A", topics=[_topic("X")]),
            _creative("B", channel=Channel.PERFORMANCE_MAX, topics=[_topic("Y", appealable=False)]),
        ]

        summary = _service(store, gateway).run(creatives)

        assert summary.review_log[0].startswith("✅ Appealed: Ad A")
        assert summary.review_log[1].startswith("🚫 Skipped (Not appealable): Ad B")
        assert summary.review_log[2].startswith("🛑 Manual review required")

    def test_previously_handled_in_processing_order(self, store, gateway):
        store.set("B::OLD", T0)
        creatives = [
            _creative("A", topics=[_topic("X", under_review=True)]),
            _creative("B", topics=[_topic("OLD")]),
            _creative("C", topics=[_topic("Z", under_review=True)]),
        ]

        summary = _service(store, gateway).run(creatives)

        assert [(o.creative.id, o.decision) for o in summary.previously_handled] == [
            ("A", Decision.UNDER_REVIEW),
            ("B", Decision.ALREADY_APPEALED),
            ("C", Decision.UNDER_REVIEW),
        ]


# ============================================================================
# deliver_report
# ============================================================================

class TestDeliverReport:
    def test_suppressed_when_nothing_appealed(self, store, gateway):
        summary = _service(store, gateway).run([_creative("C", topics=[_topic("Y", under_review=True)])])
        email_service = MagicMock()

        assert deliver_report(summary, email_service, "ops@example.com") is None
        email_service.send_report.assert_not_called()

    def test_sent_when_an_appeal_was_submitted(self, store, gateway):
        summary = _service(store, gateway).run([_creative("A", topics=[_topic("X")])])
        email_service = MagicMock()
        email_service.send_report.return_value = EmailResult(success=True, message_id="msg-1")

        result = deliver_report(summary, email_service, "ops@example.com", generated_at=T0)

        assert result.success is True
        email_service.send_report.assert_called_once_with(summary, "ops@example.com", generated_at=T0)

    def test_missing_address_is_reported(self, store, gateway):
        summary = _service(store, gateway).run([_creative("A", topics=[_topic("X")])])
        email_service = MagicMock()

        result = deliver_report(summary, email_service, "")

        assert result.success is False
        email_service.send_report.assert_not_called()
