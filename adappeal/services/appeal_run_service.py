"""
AppealRunService - drive one auto-appeal run over a sequence of creatives.

For every policy topic on every creative: look up the idempotency record,
classify, submit when eligible, and fold the outcome into a RunSummary.
Per-topic failures, including an unreadable appeal record, are recorded
and never stop the run. Only a failing creative source does.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from ..core.exceptions import AppealStoreError, CreativeSourceError
from ..core.models import (
    MANUAL_REVIEW_CHANNELS,
    Creative,
    Decision,
    PolicyTopicEntry,
    RunSummary,
    SubmissionErrorKind,
    TopicOutcome,
)
from .appeal_store import AppealStore, appeal_key
from .appeal_submitter import AppealSubmitter
from .email_service import EmailResult, EmailService
from .policy_classifier import Action, classify

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppealRunService:
    """Runs the classify/submit loop and builds the run summary."""

    def __init__(
        self,
        store: AppealStore,
        submitter: AppealSubmitter,
        justification: str,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.submitter = submitter
        self.justification = justification
        self._clock = clock

    def run(self, creatives: Iterable[Creative]) -> RunSummary:
        """
        Process every creative in order.

        Args:
            creatives: Lazy, forward-only creative source

        Returns:
            RunSummary with counters, per-outcome lists and the review log

        Raises:
            CreativeSourceError: If the source fails to produce creatives.
                Its ``summary`` covers the creatives processed before the
                failure so submitted appeals can still be reported.
        """
        summary = RunSummary(started_at=self._clock())
        logger.info(f"Starting appeal run (justification={self.justification})")

        try:
            iterator = iter(creatives)
        except Exception as e:
            raise CreativeSourceError(f"Creative source unavailable: {e}", summary=summary) from e

        while True:
            try:
                creative = next(iterator)
            except StopIteration:
                break
            except CreativeSourceError as e:
                if e.summary is None:
                    e.summary = summary
                raise
            except Exception as e:
                raise CreativeSourceError(
                    f"Creative source failed after {summary.creatives_scanned} creative(s): {e}",
                    summary=summary,
                ) from e

            self._process_creative(creative, summary)

        logger.info(
            f"Appeal run complete: scanned={summary.creatives_scanned} "
            f"checked={summary.creatives_checked} topics={summary.topics_reviewed} "
            f"submitted={summary.appeals_submitted_count} "
            f"failed={summary.count(Decision.APPEAL_FAILED)}"
        )
        return summary

    def _process_creative(self, creative: Creative, summary: RunSummary) -> None:
        summary.creatives_scanned += 1
        summary.type_counts[creative.type] = summary.type_counts.get(creative.type, 0) + 1

        if not creative.policy_topics:
            summary.skipped_creatives.append(creative)
            self._log(
                summary,
                f"⚠️ Skipped (No policy topics): Ad {creative.id} [{creative.type}] - "
                f"{creative.campaign_name} > {creative.group_name}",
            )
            return

        summary.creatives_checked += 1
        acted = False

        for entry in creative.policy_topics:
            summary.topics_reviewed += 1
            outcome = self._process_topic(creative, entry, summary)
            if outcome.decision != Decision.APPEAL_FAILED:
                acted = True

        # Every topic on the ad failed; nothing about it was settled this run
        if not acted:
            self._log(
                summary,
                f"⚠️ Skipped (No action taken): Ad {creative.id} [{creative.type}] - "
                f"{creative.campaign_name} > {creative.group_name}",
                level=logging.WARNING,
            )

    def _process_topic(
        self,
        creative: Creative,
        entry: PolicyTopicEntry,
        summary: RunSummary,
    ) -> TopicOutcome:
        key = appeal_key(creative.id, entry.topic)
        try:
            already_appealed = self.store.get(key) is not None
        except AppealStoreError as e:
            # Unknown history: never submit, the pair is retried next run
            outcome = TopicOutcome(
                creative=creative,
                entry=entry,
                decision=Decision.APPEAL_FAILED,
                manual_review_required=creative.channel in MANUAL_REVIEW_CHANNELS,
                error_kind=SubmissionErrorKind.STORE_READ_FAILURE,
                error=str(e),
            )
            self._record(outcome, summary)
            return outcome

        classification = classify(creative, entry, already_appealed)

        if classification.action == Action.APPEAL:
            result = self.submitter.submit(
                creative_id=creative.id,
                group_id=creative.group_id,
                topic=entry.topic,
                justification=self.justification,
            )
            outcome = TopicOutcome(
                creative=creative,
                entry=entry,
                decision=Decision.APPEAL_SUBMITTED if result.success else Decision.APPEAL_FAILED,
                manual_review_required=classification.manual_review_required,
                error_kind=result.error_kind,
                error=result.error,
            )
        else:
            outcome = TopicOutcome(
                creative=creative,
                entry=entry,
                decision=classification.skip_decision,
                manual_review_required=classification.manual_review_required,
            )

        self._record(outcome, summary)
        return outcome

    def _record(self, outcome: TopicOutcome, summary: RunSummary) -> None:
        creative_id = outcome.creative.id
        topic = outcome.entry.topic
        summary.outcome_counts[outcome.decision] = summary.count(outcome.decision) + 1

        if outcome.decision == Decision.APPEAL_SUBMITTED:
            summary.appeals_submitted.append(outcome)
            self._log(summary, f"✅ Appealed: Ad {creative_id} - Topic: {topic}")

        elif outcome.decision == Decision.APPEAL_FAILED:
            summary.appeal_failures.append(outcome)
            if outcome.error_kind == SubmissionErrorKind.LOOKUP_ANOMALY:
                self._log(summary, f"❌ Failed to locate ad for appeal: {creative_id} - Topic: {topic}")
            elif outcome.error_kind == SubmissionErrorKind.STORE_READ_FAILURE:
                message = (
                    f"❗ Appeal history unreadable, not appealed: Ad {creative_id} - Topic: {topic} "
                    f"({outcome.error})"
                )
                summary.anomalies.append(message)
                self._log(summary, message, level=logging.ERROR)
            elif outcome.error_kind == SubmissionErrorKind.STORE_WRITE_FAILURE:
                message = (
                    f"❗ Appeal submitted but not recorded: Ad {creative_id} - Topic: {topic} "
                    f"({outcome.error})"
                )
                summary.anomalies.append(message)
                self._log(summary, message, level=logging.ERROR)
            else:
                self._log(summary, f"❌ Error during appeal: Ad {creative_id} - {outcome.error}")

        elif outcome.decision == Decision.UNDER_REVIEW:
            summary.under_review.append(outcome)
            summary.previously_handled.append(outcome)
            self._log(summary, f"🔄 Skipped (Under review): Ad {creative_id} - Topic: {topic}")

        elif outcome.decision == Decision.ALREADY_APPEALED:
            summary.already_appealed.append(outcome)
            summary.previously_handled.append(outcome)
            self._log(summary, f"🔁 Skipped (Already appealed): Ad {creative_id} - Topic: {topic}")

        else:
            summary.not_appealable.append(outcome)
            self._log(summary, f"🚫 Skipped (Not appealable): Ad {creative_id} - Topic: {topic}")

        if outcome.manual_review_required:
            summary.manual_review.append(outcome)
            self._log(
                summary,
                f"🛑 Manual review required (PMax/Multi-Channel): Ad {creative_id} - Topic: {topic}",
            )

    @staticmethod
    def _log(summary: RunSummary, message: str, level: int = logging.INFO) -> None:
        summary.review_log.append(message)
        logger.log(level, message)


def deliver_report(
    summary: RunSummary,
    email_service: EmailService,
    to_email: str,
    generated_at: Optional[datetime] = None,
) -> Optional[EmailResult]:
    """
    Email the run report, but only when at least one appeal was submitted.

    Returns:
        EmailResult from the send, or None when the report was suppressed
    """
    if summary.appeals_submitted_count == 0:
        logger.info("No appeals submitted - report email suppressed")
        return None

    if not to_email:
        logger.warning("NOTIFICATION_EMAIL not configured - report email not sent")
        return EmailResult(success=False, error="No notification address configured")

    return email_service.send_report(summary, to_email, generated_at=generated_at or _utcnow())
