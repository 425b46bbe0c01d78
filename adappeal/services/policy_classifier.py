"""
Policy classifier: decides what to do with one policy topic on one creative.

Pure and total. The already-appealed flag is looked up by the caller so
the classifier never touches the store.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.models import (
    APPEAL_CHANNELS,
    MANUAL_REVIEW_CHANNELS,
    Creative,
    Decision,
    PolicyTopicEntry,
)


class Action(str, Enum):
    """What the run should do with a policy topic"""
    APPEAL = "appeal"
    SKIP_UNDER_REVIEW = "skip_under_review"
    SKIP_ALREADY_APPEALED = "skip_already_appealed"
    SKIP_NOT_APPEALABLE = "skip_not_appealable"


# Final decision for every action that does not involve a submission
_SKIP_DECISIONS = {
    Action.SKIP_UNDER_REVIEW: Decision.UNDER_REVIEW,
    Action.SKIP_ALREADY_APPEALED: Decision.ALREADY_APPEALED,
    Action.SKIP_NOT_APPEALABLE: Decision.NOT_APPEALABLE,
}


@dataclass(frozen=True)
class Classification:
    action: Action
    manual_review_required: bool = False

    @property
    def skip_decision(self) -> Optional[Decision]:
        """Decision for skip actions; None when an appeal must be attempted."""
        return _SKIP_DECISIONS.get(self.action)


def classify(
    creative: Creative,
    entry: PolicyTopicEntry,
    is_already_appealed: bool,
) -> Classification:
    """
    Classify a single policy topic entry.

    Rules, first match wins:
        1. appealable, not under review, never appealed, and on an
           appeal-eligible channel -> APPEAL
        2. under review -> SKIP_UNDER_REVIEW
        3. appealable and already appealed -> SKIP_ALREADY_APPEALED
        4. anything else -> SKIP_NOT_APPEALABLE

    Multi-channel and Performance Max creatives are flagged for manual
    review whatever the action.

    Args:
        creative: Creative the entry belongs to (channel is used)
        entry: Policy topic entry to classify
        is_already_appealed: Whether the store holds a record for this pair

    Returns:
        Classification with the action and manual-review flag
    """
    if (
        entry.appealable
        and not entry.under_review
        and not is_already_appealed
        and creative.channel in APPEAL_CHANNELS
    ):
        action = Action.APPEAL
    elif entry.under_review:
        action = Action.SKIP_UNDER_REVIEW
    elif entry.appealable and is_already_appealed:
        action = Action.SKIP_ALREADY_APPEALED
    else:
        action = Action.SKIP_NOT_APPEALABLE

    return Classification(
        action=action,
        manual_review_required=creative.channel in MANUAL_REVIEW_CHANNELS,
    )
