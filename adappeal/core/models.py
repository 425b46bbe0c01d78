"""
Pydantic models for creatives, policy decisions and run summaries
"""

from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


# ============================================================================
# Enums
# ============================================================================

class Channel(str, Enum):
    """Advertising channel the creative's campaign targets"""
    SEARCH = "SEARCH"
    DISPLAY = "DISPLAY"
    VIDEO = "VIDEO"
    MULTI_CHANNEL = "MULTI_CHANNEL"
    PERFORMANCE_MAX = "PERFORMANCE_MAX"


# Channels eligible for automatic appeal
APPEAL_CHANNELS = frozenset({Channel.SEARCH, Channel.DISPLAY, Channel.VIDEO})

# Channels always surfaced for a human to review
MANUAL_REVIEW_CHANNELS = frozenset({Channel.MULTI_CHANNEL, Channel.PERFORMANCE_MAX})


class Decision(str, Enum):
    """Primary outcome for one (creative, policy topic) pair"""
    APPEAL_SUBMITTED = "appeal_submitted"
    APPEAL_FAILED = "appeal_failed"
    UNDER_REVIEW = "under_review"
    ALREADY_APPEALED = "already_appealed"
    NOT_APPEALABLE = "not_appealable"


class SubmissionErrorKind(str, Enum):
    """Why an appeal attempt did not complete"""
    LOOKUP_ANOMALY = "lookup_anomaly"
    STORE_READ_FAILURE = "store_read_failure"
    SUBMISSION_FAILED = "submission_failed"
    STORE_WRITE_FAILURE = "store_write_failure"


# ============================================================================
# Creatives
# ============================================================================

class PolicyTopicEntry(BaseModel):
    """One policy violation or annotation attached to a creative"""
    model_config = ConfigDict(frozen=True)

    topic: str
    appealable: bool = False
    under_review: bool = False


class Creative(BaseModel):
    """Read-only snapshot of an enabled ad and its policy summary"""
    model_config = ConfigDict(frozen=True)

    id: str
    type: str = Field(..., description="Platform ad type, e.g. RESPONSIVE_SEARCH_AD")
    channel: Channel
    group_id: str
    campaign_name: str = ""
    group_name: str = ""
    approval_status: Optional[str] = None
    policy_topics: List[PolicyTopicEntry] = Field(default_factory=list)

    @property
    def url(self) -> str:
        """Deep link to the ad in the Google Ads UI"""
        return f"https://ads.google.com/aw/ads?adId={self.id}"


# ============================================================================
# Run results
# ============================================================================

class TopicOutcome(BaseModel):
    """Decision recorded for a single policy topic on a creative"""
    creative: Creative
    entry: PolicyTopicEntry
    decision: Decision
    manual_review_required: bool = False
    error_kind: Optional[SubmissionErrorKind] = None
    error: Optional[str] = None

    @property
    def label(self) -> str:
        c = self.creative
        return (
            f'Ad {c.id} [{c.type}] ({c.channel.value}) - Topic: "{self.entry.topic}"\n'
            f"Campaign: {c.campaign_name} > {c.group_name}\n"
            f"Link: {c.url}"
        )


class RunSummary(BaseModel):
    """
    Aggregate of every decision made in one run.

    Built fresh per run and handed to the report renderer as-is.
    """
    started_at: datetime
    creatives_scanned: int = 0
    creatives_checked: int = 0
    topics_reviewed: int = 0
    outcome_counts: Dict[Decision, int] = Field(
        default_factory=lambda: {decision: 0 for decision in Decision}
    )
    type_counts: Dict[str, int] = Field(default_factory=dict)

    appeals_submitted: List[TopicOutcome] = Field(default_factory=list)
    appeal_failures: List[TopicOutcome] = Field(default_factory=list)
    under_review: List[TopicOutcome] = Field(default_factory=list)
    already_appealed: List[TopicOutcome] = Field(default_factory=list)
    # Under review and already appealed, in processing order
    previously_handled: List[TopicOutcome] = Field(default_factory=list)
    not_appealable: List[TopicOutcome] = Field(default_factory=list)
    manual_review: List[TopicOutcome] = Field(default_factory=list)

    skipped_creatives: List[Creative] = Field(default_factory=list)
    anomalies: List[str] = Field(default_factory=list)
    review_log: List[str] = Field(default_factory=list)

    def count(self, decision: Decision) -> int:
        return self.outcome_counts.get(decision, 0)

    @property
    def appeals_submitted_count(self) -> int:
        return self.count(Decision.APPEAL_SUBMITTED)

    @property
    def store_write_failures(self) -> List[TopicOutcome]:
        return [
            outcome for outcome in self.appeal_failures
            if outcome.error_kind == SubmissionErrorKind.STORE_WRITE_FAILURE
        ]
