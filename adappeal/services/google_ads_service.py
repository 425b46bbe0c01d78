"""
GoogleAdsService - Google Ads REST API integration for policy appeals.

Supplies the creative source for a run (a paginated GAQL search over
enabled ads with their policy summaries) and implements the appeal
gateway: ad lookup by (ad group, ad) id and appeal submission through the
configured appeal relay endpoint.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import requests

from ..core.config import Config
from ..core.exceptions import CreativeSourceError, GoogleAdsApiError
from ..core.models import Channel, Creative, PolicyTopicEntry
from .appeal_submitter import AppealGateway, RemoteCreative

logger = logging.getLogger(__name__)

GOOGLE_ADS_API_BASE = "https://googleads.googleapis.com"
OAUTH_TOKEN_URL = "https://oauth2.googleapis.com/token"

# Enabled ads in enabled campaigns/ad groups across the supported channels
CREATIVE_QUERY = """
    SELECT
      campaign.name,
      ad_group.name,
      ad_group.id,
      ad_group_ad.ad.id,
      ad_group_ad.ad.type,
      campaign.advertising_channel_type,
      ad_group_ad.policy_summary.approval_status,
      ad_group_ad.policy_summary.policy_topic_entries
    FROM ad_group_ad
    WHERE
      campaign.advertising_channel_type IN ('SEARCH', 'DISPLAY', 'VIDEO', 'MULTI_CHANNEL', 'PERFORMANCE_MAX')
      AND campaign.status = 'ENABLED'
      AND ad_group.status = 'ENABLED'
      AND ad_group_ad.status = 'ENABLED'
"""

LOOKUP_QUERY = """
    SELECT
      ad_group_ad.resource_name,
      ad_group.id,
      ad_group_ad.ad.id
    FROM ad_group_ad
    WHERE
      ad_group.id = {group_id}
      AND ad_group_ad.ad.id = {creative_id}
    LIMIT 1
"""


def normalize_customer_id(customer_id: str) -> str:
    """'123-456-7890' -> '1234567890'."""
    normalized = (customer_id or "").replace("-", "").strip()
    if not normalized.isdigit():
        raise ValueError(f"Invalid Google Ads customer id: {customer_id!r}")
    return normalized


def parse_creative_row(row: Dict[str, Any]) -> Optional[Creative]:
    """
    Convert one GAQL search row (REST JSON, camelCase) into a Creative.

    Returns None for rows missing an ad or ad group id, and for rows whose
    channel is not one the engine handles.
    """
    campaign = row.get("campaign") or {}
    ad_group = row.get("adGroup") or {}
    ad_group_ad = row.get("adGroupAd") or {}
    ad = ad_group_ad.get("ad") or {}
    policy_summary = ad_group_ad.get("policySummary") or {}

    ad_id = ad.get("id")
    group_id = ad_group.get("id")
    if ad_id in (None, "") or group_id in (None, ""):
        logger.warning(f"Ignoring row without ad or ad group id (ad={ad_id!r}, ad_group={group_id!r})")
        return None

    channel_raw = campaign.get("advertisingChannelType")
    try:
        channel = Channel(channel_raw)
    except ValueError:
        logger.warning(f"Ignoring ad {ad_id} with unsupported channel {channel_raw!r}")
        return None

    topics = [
        PolicyTopicEntry(
            topic=entry.get("topic", ""),
            appealable=bool(entry.get("appealable", False)),
            under_review=bool(entry.get("underReview", False)),
        )
        for entry in (policy_summary.get("policyTopicEntries") or [])
    ]

    return Creative(
        id=str(ad_id),
        type=ad.get("type") or "UNKNOWN",
        channel=channel,
        group_id=str(group_id),
        campaign_name=campaign.get("name") or "",
        group_name=ad_group.get("name") or "",
        approval_status=policy_summary.get("approvalStatus"),
        policy_topics=topics,
    )


def iter_creatives_from_export(path: Union[str, Path]) -> Iterator[Creative]:
    """
    Yield creatives from a JSON export of GAQL rows.

    Accepts either a bare list of rows or a search response with "results".
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CreativeSourceError(f"Cannot read creative export {path}: {e}") from e

    rows = data.get("results", []) if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise CreativeSourceError(f"Creative export {path} does not contain a list of rows")

    logger.info(f"Loaded {len(rows)} row(s) from {path}")
    for row in rows:
        creative = parse_creative_row(row)
        if creative is not None:
            yield creative


class GoogleAdsService(AppealGateway):
    """
    Google Ads REST API client used as creative source and appeal gateway.

    Features:
    - OAuth2 refresh-token exchange with access token caching
    - Paginated GAQL search
    - Ad lookup by (ad group id, ad id)
    - Appeal submission via the appeal relay endpoint
    """

    def __init__(
        self,
        customer_id: Optional[str] = None,
        developer_token: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        login_customer_id: Optional[str] = None,
        api_version: Optional[str] = None,
        appeal_relay_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Google Ads service.

        Args:
            customer_id: Account to operate on (if None, uses Config)
            developer_token: API developer token (if None, uses Config)
            client_id: OAuth client id (if None, uses Config)
            client_secret: OAuth client secret (if None, uses Config)
            refresh_token: OAuth refresh token (if None, uses Config)
            login_customer_id: Manager account id, if accessing via MCC
            api_version: REST API version, e.g. "v20"
            appeal_relay_url: Endpoint performing the appeal action
            timeout: Per-request timeout in seconds
            session: requests session (a new one is created if None)
        """
        self.customer_id = normalize_customer_id(customer_id or Config.GOOGLE_ADS_CUSTOMER_ID)
        self.developer_token = developer_token or Config.GOOGLE_ADS_DEVELOPER_TOKEN
        self.client_id = client_id or Config.GOOGLE_ADS_CLIENT_ID
        self.client_secret = client_secret or Config.GOOGLE_ADS_CLIENT_SECRET
        self.refresh_token = refresh_token or Config.GOOGLE_ADS_REFRESH_TOKEN
        login_id = login_customer_id or Config.GOOGLE_ADS_LOGIN_CUSTOMER_ID
        self.login_customer_id = normalize_customer_id(login_id) if login_id else None
        self.api_version = api_version or Config.GOOGLE_ADS_API_VERSION
        self.appeal_relay_url = appeal_relay_url or Config.APPEAL_RELAY_URL
        self.timeout = timeout or Config.HTTP_TIMEOUT_SECONDS
        self._session = session or requests.Session()

        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

        if not self.appeal_relay_url:
            logger.warning("APPEAL_RELAY_URL not found - appeal submissions will fail")

        logger.info(f"GoogleAdsService initialized (customer: {self.customer_id}, api: {self.api_version})")

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _get_access_token(self) -> str:
        # Refresh a minute early so a token never expires mid-request
        if self._access_token and time.time() < self._token_expires_at - 60:
            return self._access_token

        try:
            response = self._session.post(
                OAUTH_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": self.refresh_token,
                    "grant_type": "refresh_token",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GoogleAdsApiError(f"OAuth token request failed: {e}") from e

        if not response.ok:
            raise GoogleAdsApiError(
                f"OAuth token error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        payload = response.json()
        self._access_token = payload["access_token"]
        self._token_expires_at = time.time() + int(payload.get("expires_in", 3600))
        return self._access_token

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._get_access_token()}",
            "developer-token": self.developer_token,
            "Content-Type": "application/json",
        }
        if self.login_customer_id:
            headers["login-customer-id"] = self.login_customer_id
        return headers

    def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._session.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise GoogleAdsApiError(f"Request to {url} failed: {e}") from e

        if not response.ok:
            raise GoogleAdsApiError(
                f"Google Ads API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        return response.json() if response.content else {}

    # ------------------------------------------------------------------
    # Search / creative source
    # ------------------------------------------------------------------

    def search(self, query: str) -> Iterator[Dict[str, Any]]:
        """
        Run a GAQL query and yield result rows across all pages.

        Raises:
            GoogleAdsApiError: On any failed page request
        """
        url = f"{GOOGLE_ADS_API_BASE}/{self.api_version}/customers/{self.customer_id}/googleAds:search"
        payload: Dict[str, Any] = {"query": query}
        page = 0

        while True:
            data = self._post(url, payload)
            page += 1
            results = data.get("results") or []
            logger.debug(f"GAQL page {page}: {len(results)} row(s)")
            for row in results:
                yield row

            next_token = data.get("nextPageToken")
            if not next_token:
                break
            payload = {"query": query, "pageToken": next_token}

    def iter_creatives(self) -> Iterator[Creative]:
        """Yield every enabled creative with its policy summary."""
        for row in self.search(CREATIVE_QUERY):
            creative = parse_creative_row(row)
            if creative is not None:
                yield creative

    # ------------------------------------------------------------------
    # Appeal gateway
    # ------------------------------------------------------------------

    def find_creative(self, group_id: str, creative_id: str) -> Optional[RemoteCreative]:
        if not (str(group_id).isdigit() and str(creative_id).isdigit()):
            raise ValueError(f"Ad group id and ad id must be numeric: {group_id!r}, {creative_id!r}")

        query = LOOKUP_QUERY.format(group_id=group_id, creative_id=creative_id)
        for row in self.search(query):
            ad_group_ad = row.get("adGroupAd") or {}
            return RemoteCreative(
                group_id=str(group_id),
                creative_id=str(creative_id),
                resource_name=ad_group_ad.get("resourceName"),
            )
        return None

    def appeal_policy(self, remote: RemoteCreative, justification: str, topics: List[str]) -> None:
        if not self.appeal_relay_url:
            raise GoogleAdsApiError("APPEAL_RELAY_URL not configured")

        payload = {
            "customerId": self.customer_id,
            "adGroupId": remote.group_id,
            "adId": remote.creative_id,
            "resourceName": remote.resource_name,
            "justification": justification,
            "policyTopics": topics,
        }
        logger.info(f"Submitting appeal for ad {remote.creative_id} topics={topics}")
        self._post(self.appeal_relay_url, payload)
