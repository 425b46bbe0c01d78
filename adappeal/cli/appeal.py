"""
Appeal run CLI command

Scans the account's enabled ads, appeals eligible policy topics once,
prints the report, and emails it when any appeal was submitted.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import click

from ..core.config import Config
from ..core.exceptions import AppealStoreError, CreativeSourceError
from ..core.models import RunSummary
from ..services.appeal_run_service import AppealRunService, deliver_report
from ..services.appeal_store import SupabaseAppealStore
from ..services.appeal_submitter import AppealSubmitter
from ..services.email_service import EmailService
from ..services.google_ads_service import GoogleAdsService, iter_creatives_from_export
from ..services.report_renderer import render_text


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


@click.command('run')
@click.option('--customer-id', default=None, help='Google Ads customer id (default: GOOGLE_ADS_CUSTOMER_ID)')
@click.option('--from-file', type=click.Path(dir_okay=False), default=None,
              help='Read creatives from a JSON export of GAQL rows instead of the API')
@click.option('--email', default=None, help='Report recipient (default: NOTIFICATION_EMAIL)')
@click.option('--notify/--no-notify', default=True, help='Email the report when appeals were submitted')
@click.option('--print-report/--no-print-report', default=True, help='Print the report to stdout')
def run_command(
    customer_id: Optional[str],
    from_file: Optional[str],
    email: Optional[str],
    notify: bool,
    print_report: bool,
):
    """
    Run the policy auto-appeal over all enabled ads

    Example:
        adappeal run --customer-id 123-456-7890 --email ops@example.com
    """
    try:
        Config.validate_google_ads()
        ads_service = GoogleAdsService(customer_id=customer_id)
        store = SupabaseAppealStore(scope=ads_service.customer_id)
    except (ValueError, AppealStoreError) as e:
        click.echo(f"\n❌ Configuration error: {e}", err=True)
        raise click.Abort()

    submitter = AppealSubmitter(gateway=ads_service, store=store)
    run_service = AppealRunService(
        store=store,
        submitter=submitter,
        justification=Config.APPEAL_JUSTIFICATION,
    )

    if from_file:
        creatives = iter_creatives_from_export(from_file)
    else:
        creatives = ads_service.iter_creatives()

    to_email = email or Config.NOTIFICATION_EMAIL

    try:
        summary = run_service.run(creatives)
    except CreativeSourceError as e:
        logger.error(f"Appeal run aborted: {e}")
        click.echo(f"\n❌ Appeal run aborted: {e}", err=True)
        # Appeals already sent before the failure still need to be reported
        if e.summary is not None and e.summary.creatives_scanned:
            click.echo("⚠️  Partial report for ads processed before the failure:", err=True)
            _report(e.summary, to_email, notify, print_report)
        raise click.Abort()

    _report(summary, to_email, notify, print_report)


def _report(summary: RunSummary, to_email: str, notify: bool, print_report: bool) -> None:
    generated_at = datetime.now(timezone.utc)
    if print_report:
        click.echo(render_text(summary, generated_at))
        click.echo()

    if summary.store_write_failures:
        click.echo(
            f"❗ {len(summary.store_write_failures)} appeal(s) submitted but not recorded - "
            f"they may be appealed again on the next run",
            err=True,
        )

    if not notify:
        return

    result = deliver_report(summary, EmailService(), to_email=to_email, generated_at=generated_at)
    if result is None:
        click.echo("ℹ️  No appeals submitted - report email not sent")
    elif result.success:
        click.echo(f"📧 Report emailed to {to_email}")
    else:
        click.echo(f"⚠️  Report email failed: {result.error}", err=True)
