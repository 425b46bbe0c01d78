"""
Appeal record CLI commands

Inspect or reset the per-account record of which ad/topic pairs were
already appealed.
"""

from typing import Optional

import click

from ..core.config import Config
from ..core.exceptions import AppealStoreError
from ..services.appeal_store import SupabaseAppealStore
from ..services.google_ads_service import normalize_customer_id


def _open_store(customer_id: Optional[str]) -> SupabaseAppealStore:
    try:
        scope = normalize_customer_id(customer_id or Config.GOOGLE_ADS_CUSTOMER_ID)
        return SupabaseAppealStore(scope=scope)
    except (ValueError, AppealStoreError) as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        raise click.Abort()


@click.group('store')
def store_group():
    """Appeal record commands"""
    pass


@store_group.command('list')
@click.option('--customer-id', default=None, help='Google Ads customer id (default: GOOGLE_ADS_CUSTOMER_ID)')
@click.option('--creative', 'creative_id', default=None, help='Only records for this ad id')
def list_records(customer_id: Optional[str], creative_id: Optional[str]):
    """List recorded appeals"""
    store = _open_store(customer_id)
    try:
        rows = store.list_records(creative_id=creative_id)
    except AppealStoreError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    if not rows:
        click.echo("No appeal records found")
        return

    click.echo(f"📋 {len(rows)} appeal record(s) for account {store.scope}:")
    for row in rows:
        click.echo(f"  {row['appealed_at'].isoformat()}  Ad {row['creative_id']}  Topic: {row['topic']}")


@store_group.command('clear')
@click.option('--customer-id', default=None, help='Google Ads customer id (default: GOOGLE_ADS_CUSTOMER_ID)')
@click.option('--creative', 'creative_id', default=None, help='Only clear records for this ad id')
@click.option('--topic', default=None, help='Only clear records for this policy topic')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
def clear_records(customer_id: Optional[str], creative_id: Optional[str], topic: Optional[str], yes: bool):
    """
    Clear recorded appeals so the pairs become eligible again

    Example:
        adappeal store clear --creative 987654321 --topic MISLEADING_CLAIM
    """
    store = _open_store(customer_id)

    target = f"ad {creative_id}" if creative_id else "ALL ads"
    if topic:
        target += f", topic {topic}"
    if not yes:
        click.confirm(f"⚠️  Clear appeal records for {target} in account {store.scope}?", abort=True)

    try:
        removed = store.clear(creative_id=creative_id, topic=topic)
    except AppealStoreError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    click.echo(f"✅ Cleared {removed} appeal record(s)")
