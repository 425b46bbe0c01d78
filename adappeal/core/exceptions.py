"""
Exception types raised across adappeal.
"""

from typing import Optional


class AdAppealError(Exception):
    """Base class for adappeal errors."""


class AppealStoreError(AdAppealError):
    """The appeal idempotency store could not be read or written."""


class CreativeSourceError(AdAppealError):
    """
    The creative sequence for a run could not be produced.

    When raised mid-run, ``summary`` holds the RunSummary for the creatives
    processed before the failure, including any appeals already submitted.
    """

    def __init__(self, message: str, summary=None):
        super().__init__(message)
        self.summary = summary


class GoogleAdsApiError(AdAppealError):
    """A Google Ads API (or appeal relay) call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
