"""
Configuration commands for bson-to-json.
"""
import click
import json
import sys
import logging
from ..utils.exceptions import ConfigError
from ..utils.debug_logger import debug_log
from .common import get_config

# Get logger for this module
logger = logging.getLogger(__name__)

@click.group()
def config():
    """Show or change the stored defaults."""
    pass

@config.command('show')
@click.pass_context
@debug_log
def show_config(ctx):
    """Print the effective configuration."""
    manager = get_config(ctx)
    click.echo(f"Config file: {manager.config_file}")
    click.echo(json.dumps(manager.as_dict(), indent=2))

@config.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
@debug_log
def set_config(ctx, key: str, value: str):
    """Store a default, e.g. `bson-to-json config set indent 4`."""
    manager = get_config(ctx)
    try:
        stored = manager.set(key, value)
    except ConfigError as e:
        logger.debug(f"Rejected config value {key}={value}: {str(e)}")
        click.echo(click.style(f"✗ Error: {str(e)}", fg='red'), err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(click.style(f"✗ Cannot write {manager.config_file}: {str(e)}", fg='red'), err=True)
        sys.exit(1)
    click.echo(click.style(f"✓ {key} = {json.dumps(stored)}", fg='green'))

@config.command('reset')
@click.pass_context
@debug_log
def reset_config(ctx):
    """Restore every default."""
    manager = get_config(ctx)
    try:
        manager.reset()
    except OSError as e:
        click.echo(click.style(f"✗ Cannot write {manager.config_file}: {str(e)}", fg='red'), err=True)
        sys.exit(1)
    click.echo(click.style("✓ Configuration reset to defaults", fg='green'))
