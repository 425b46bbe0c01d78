"""
Main CLI entry point for adappeal
"""

import click
from .appeal import run_command
from .store import store_group


@click.group()
@click.version_option(version='0.1.0')
def cli():
    """
    adappeal - Google Ads policy auto-appeal

    Appeals eligible disapproved or limited ads once per ad/policy topic
    and reports everything it skipped.
    """
    pass


# Register command groups
cli.add_command(run_command)
cli.add_command(store_group)


if __name__ == '__main__':
    cli()
