"""
Configuration management for adappeal
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration"""

    # Run behaviour
    NOTIFICATION_EMAIL: str = os.getenv('NOTIFICATION_EMAIL', '')
    APPEAL_JUSTIFICATION: str = os.getenv('APPEAL_JUSTIFICATION', 'DISPUTE_POLICY_DECISION')

    # Supabase (appeal idempotency records)
    SUPABASE_URL: str = os.getenv('SUPABASE_URL', '')
    SUPABASE_SERVICE_KEY: str = os.getenv('SUPABASE_SERVICE_KEY', '')
    APPEAL_RECORDS_TABLE: str = os.getenv('APPEAL_RECORDS_TABLE', 'ad_appeal_records')

    # Resend (report email)
    RESEND_API_KEY: str = os.getenv('RESEND_API_KEY', '')
    EMAIL_FROM: str = os.getenv('EMAIL_FROM', 'noreply@adappeal.io')

    # Google Ads API
    GOOGLE_ADS_DEVELOPER_TOKEN: str = os.getenv('GOOGLE_ADS_DEVELOPER_TOKEN', '')
    GOOGLE_ADS_CLIENT_ID: str = os.getenv('GOOGLE_ADS_CLIENT_ID', '')
    GOOGLE_ADS_CLIENT_SECRET: str = os.getenv('GOOGLE_ADS_CLIENT_SECRET', '')
    GOOGLE_ADS_REFRESH_TOKEN: str = os.getenv('GOOGLE_ADS_REFRESH_TOKEN', '')
    GOOGLE_ADS_CUSTOMER_ID: str = os.getenv('GOOGLE_ADS_CUSTOMER_ID', '')  # e.g., "1234567890" (no dashes)
    GOOGLE_ADS_LOGIN_CUSTOMER_ID: str = os.getenv('GOOGLE_ADS_LOGIN_CUSTOMER_ID', '')  # MCC id, optional
    GOOGLE_ADS_API_VERSION: str = os.getenv('GOOGLE_ADS_API_VERSION', 'v20')

    # Endpoint that performs the policy appeal for an ad/topic pair
    APPEAL_RELAY_URL: str = os.getenv('APPEAL_RELAY_URL', '')

    # Network
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv('HTTP_TIMEOUT_SECONDS', '30'))

    @classmethod
    def validate(cls) -> bool:
        """Validate required database configuration"""
        required = {
            'SUPABASE_URL': cls.SUPABASE_URL,
            'SUPABASE_SERVICE_KEY': cls.SUPABASE_SERVICE_KEY,
        }

        missing = [k for k, v in required.items() if not v]

        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return True

    @classmethod
    def validate_google_ads(cls) -> bool:
        """Validate Google Ads API credentials"""
        required = {
            'GOOGLE_ADS_DEVELOPER_TOKEN': cls.GOOGLE_ADS_DEVELOPER_TOKEN,
            'GOOGLE_ADS_CLIENT_ID': cls.GOOGLE_ADS_CLIENT_ID,
            'GOOGLE_ADS_CLIENT_SECRET': cls.GOOGLE_ADS_CLIENT_SECRET,
            'GOOGLE_ADS_REFRESH_TOKEN': cls.GOOGLE_ADS_REFRESH_TOKEN,
        }

        missing = [k for k, v in required.items() if not v]

        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return True

    @classmethod
    def get(cls, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get configuration value"""
        return getattr(cls, key, default)
