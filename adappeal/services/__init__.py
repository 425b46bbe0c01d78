"""
Services layer for adappeal.

Separates the decision engine (policy classifier, submitter, run service)
from its adapters (Google Ads API, appeal store, email).
"""

from .appeal_store import (
    AppealStore,
    InMemoryAppealStore,
    SupabaseAppealStore,
    appeal_key,
)
from .policy_classifier import Action, Classification, classify
from .appeal_submitter import AppealGateway, AppealSubmitter, RemoteCreative, SubmissionResult
from .appeal_run_service import AppealRunService, deliver_report
from .email_service import EmailService, EmailResult
from .google_ads_service import GoogleAdsService, iter_creatives_from_export

__all__ = [
    'AppealStore',
    'InMemoryAppealStore',
    'SupabaseAppealStore',
    'appeal_key',
    'Action',
    'Classification',
    'classify',
    'AppealGateway',
    'AppealSubmitter',
    'RemoteCreative',
    'SubmissionResult',
    'AppealRunService',
    'deliver_report',
    'EmailService',
    'EmailResult',
    'GoogleAdsService',
    'iter_creatives_from_export',
]
