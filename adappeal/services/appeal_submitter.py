"""
AppealSubmitter - submit one policy appeal and record it.

Looks up the remote ad, sends the appeal for a single topic, then writes
the idempotency record before reporting success. Never raises for
per-topic failures; every outcome comes back as a SubmissionResult.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..core.models import SubmissionErrorKind
from .appeal_store import AppealStore, appeal_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteCreative:
    """Handle to an ad resolved on the ads platform."""
    group_id: str
    creative_id: str
    resource_name: Optional[str] = None


class AppealGateway(ABC):
    """Remote side of an appeal: ad lookup plus the appeal action itself."""

    @abstractmethod
    def find_creative(self, group_id: str, creative_id: str) -> Optional[RemoteCreative]:
        """Resolve the ad addressed by (group_id, creative_id), or None."""

    @abstractmethod
    def appeal_policy(self, remote: RemoteCreative, justification: str, topics: List[str]) -> None:
        """Submit the appeal. Raises on any transport or validation error."""


@dataclass
class SubmissionResult:
    """Result of an appeal submission."""
    success: bool
    error_kind: Optional[SubmissionErrorKind] = None
    error: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppealSubmitter:
    """Submits appeals through a gateway and records them in the store."""

    def __init__(
        self,
        gateway: AppealGateway,
        store: AppealStore,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.gateway = gateway
        self.store = store
        self._clock = clock

    def submit(
        self,
        creative_id: str,
        group_id: str,
        topic: str,
        justification: str,
    ) -> SubmissionResult:
        """
        Appeal a single policy topic on a creative.

        Args:
            creative_id: Ad id
            group_id: Ad group id the ad belongs to
            topic: Policy topic to appeal
            justification: Appeal reason passed through to the platform

        Returns:
            SubmissionResult; on failure error_kind is one of
            LOOKUP_ANOMALY, SUBMISSION_FAILED or STORE_WRITE_FAILURE
        """
        try:
            remote = self.gateway.find_creative(group_id, creative_id)
            if remote is None:
                logger.warning(f"Could not locate ad {creative_id} in ad group {group_id} for appeal")
                return SubmissionResult(
                    success=False,
                    error_kind=SubmissionErrorKind.LOOKUP_ANOMALY,
                    error=f"Ad {creative_id} not found in ad group {group_id}",
                )

            self.gateway.appeal_policy(remote, justification, [topic])

        except Exception as e:
            error_msg = str(e)
            logger.warning(f"Appeal failed for ad {creative_id} topic {topic}: {error_msg}")
            return SubmissionResult(
                success=False,
                error_kind=SubmissionErrorKind.SUBMISSION_FAILED,
                error=error_msg,
            )

        key = appeal_key(creative_id, topic)
        try:
            self.store.set(key, self._clock())
        except Exception as e:
            # The platform accepted the appeal but the next run will not know it.
            error_msg = str(e)
            logger.error(f"Appeal submitted but not recorded for {key}: {error_msg}")
            return SubmissionResult(
                success=False,
                error_kind=SubmissionErrorKind.STORE_WRITE_FAILURE,
                error=error_msg,
            )

        logger.info(f"Appeal submitted for ad {creative_id} topic {topic}")
        return SubmissionResult(success=True)
