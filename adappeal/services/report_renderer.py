"""
Render a RunSummary as the plain-text (and HTML-wrapped) appeal report.
"""

import html
from datetime import datetime
from typing import List

from ..core.models import Decision, RunSummary, SubmissionErrorKind, TopicOutcome

REPORT_SUBJECT = "Google Ads Appeal Report"


_DECISION_PREFIX = {
    Decision.APPEAL_SUBMITTED: "✅ Appealed Automatically:",
    Decision.UNDER_REVIEW: "🔄 Under Review:",
    Decision.ALREADY_APPEALED: "🔁 Already Appealed (previously recorded):",
}

_FAILURE_PREFIX = {
    SubmissionErrorKind.LOOKUP_ANOMALY: "❌ Could not locate ad for appeal:",
    SubmissionErrorKind.STORE_READ_FAILURE: "❗ Appeal history unreadable:",
    SubmissionErrorKind.SUBMISSION_FAILED: "❌ Error during auto-appeal:",
    SubmissionErrorKind.STORE_WRITE_FAILURE: "❗ Appealed but not recorded:",
}


def _prefix(outcome: TopicOutcome) -> str:
    if outcome.decision == Decision.APPEAL_FAILED:
        return _FAILURE_PREFIX.get(outcome.error_kind, "❌ Appeal failed:")
    return _DECISION_PREFIX.get(outcome.decision, "")


def _section(
    title: str,
    outcomes: List[TopicOutcome],
    with_errors: bool = False,
    prefixed: bool = True,
) -> str:
    if not outcomes:
        return ""
    blocks = []
    for outcome in outcomes:
        block = outcome.label
        prefix = _prefix(outcome) if prefixed else ""
        if prefix:
            block = f"{prefix}\n{block}"
        if with_errors and outcome.error:
            block += f"\nError: {outcome.error}"
        blocks.append(block)
    return f"\n\n{title}:\n" + "\n\n".join(blocks)


def render_text(summary: RunSummary, generated_at: datetime) -> str:
    """Build the human-readable report for a run."""
    previously_handled = summary.count(Decision.UNDER_REVIEW) + summary.count(Decision.ALREADY_APPEALED)

    text = (
        f"📊 Google Ads Appeal Report - {generated_at.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}"
        "\n==========================================================="
        "\n\n📌 Summary:"
        f"\n🧮 Total Scannable Ads in Account: {summary.creatives_scanned}"
        f"\n🔍 Ads Checked for Policy Issues: {summary.creatives_checked}"
        f"\n📄 Total Policy Topics Reviewed: {summary.topics_reviewed}"
        f"\n✅ Successful Appeals Submitted: {summary.appeals_submitted_count}"
        f"\n🔄 Already Under Review or Previously Appealed: {previously_handled}"
        f"\n🚫 Topics Not Appealable: {summary.count(Decision.NOT_APPEALABLE)}"
        f"\n❌ Appeal Attempts Failed: {summary.count(Decision.APPEAL_FAILED)}"
    )

    text += _section("✅ Appeals Submitted", summary.appeals_submitted)
    text += _section("🔄 Under Review or Previously Appealed", summary.previously_handled)
    text += _section("🚫 Topics Not Appealable", summary.not_appealable)
    text += _section("❌ Appeal Attempts Failed", summary.appeal_failures, with_errors=True)
    text += _section(
        "🛑 Manual Review Required (PMax/Multi-Channel)",
        summary.manual_review,
        prefixed=False,
    )

    if summary.skipped_creatives:
        text += "\n\n⚠️ Skipped Ads (No Policy Topics Found):\n" + "\n".join(
            f"Ad {c.id} [{c.type}] - {c.campaign_name} > {c.group_name}"
            for c in summary.skipped_creatives
        )

    if summary.anomalies:
        text += "\n\n❗ Anomalies (check before the next run):\n" + "\n".join(summary.anomalies)

    text += "\n\n🧾 Detailed Ad Review Log:\n" + "\n".join(summary.review_log)

    if summary.type_counts:
        text += "\n\n📦 Ad Type Distribution:"
        for ad_type, count in summary.type_counts.items():
            text += f"\n- {ad_type}: {count}"

    return text


def render_html(summary: RunSummary, generated_at: datetime) -> str:
    """Wrap the text report for an HTML email body."""
    body = html.escape(render_text(summary, generated_at))
    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
        </head>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                     color: #1F2937; max-width: 800px; margin: 0 auto; padding: 20px;">
            <pre style="white-space: pre-wrap; font-family: inherit; font-size: 14px; line-height: 1.5;">{body}</pre>
        </body>
        </html>
        """
