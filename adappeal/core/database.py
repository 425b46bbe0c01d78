"""
Supabase connection backing the appeal record store
"""

import logging
from typing import Optional

from supabase import create_client, Client

from .config import Config
from .exceptions import AppealStoreError

logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return the process-wide Supabase client, connecting on first use.

    Raises:
        AppealStoreError: If the database settings are missing or the
            client cannot be created. Without a store no run can proceed.
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    try:
        Config.validate()
    except ValueError as e:
        raise AppealStoreError(f"Appeal store is not configured: {e}") from e

    try:
        _supabase_client = create_client(Config.SUPABASE_URL, Config.SUPABASE_SERVICE_KEY)
    except Exception as e:
        raise AppealStoreError(f"Cannot connect to appeal store at {Config.SUPABASE_URL}: {e}") from e

    logger.info(f"Connected to appeal store at {Config.SUPABASE_URL}")
    return _supabase_client


def reset_supabase_client() -> None:
    """Forget the cached client so the next call reconnects."""
    global _supabase_client
    _supabase_client = None
