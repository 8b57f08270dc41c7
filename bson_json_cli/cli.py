#!/usr/bin/env python3
"""
bson-to-json - A utility for converting BSON files to JSON.

This is the main entry point that:
1. Loads the stored configuration and sets up logging
2. Dispatches to the io, batch or config subcommands
3. Falls back to batch when no subcommand is named
"""

import click
import logging
from pathlib import Path
from . import __version__
from .commands.batch import batch
from .commands.config import config
from .commands.convert import convert_io
from .utils.config_manager import ConfigManager, DEFAULT_CONFIG_DIR
from .utils.logger import setup_logging

# Get logger
logger = logging.getLogger(__name__)

class DefaultCommandGroup(click.Group):
    """Click group that hands unrecognised arguments to a default subcommand."""

    def __init__(self, *args, default_command: str = None, **kwargs):
        kwargs.setdefault('invoke_without_command', True)
        super().__init__(*args, **kwargs)
        self.default_command = default_command

    def resolve_command(self, ctx, args):
        """Resolve the subcommand, keeping all arguments for the default one."""
        if args and self.default_command and self.get_command(ctx, args[0]) is None:
            command = self.get_command(ctx, self.default_command)
            logger.debug(f"No subcommand named {args[0]!r}, using {self.default_command}")
            return command.name, command, args
        return super().resolve_command(ctx, args)

@click.group(cls=DefaultCommandGroup, default_command='batch',
             context_settings={'ignore_unknown_options': True})
@click.option('--config-dir', default=str(DEFAULT_CONFIG_DIR), type=click.Path(file_okay=False),
              help=f'Configuration directory (default: {DEFAULT_CONFIG_DIR})')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(__version__, prog_name='bson-to-json')
@click.pass_context
def cli(ctx, config_dir: str, debug: bool):
    """
    bson-to-json - A utility for converting BSON files to JSON.

    Without a subcommand, the arguments are passed to `batch`.

    Examples:
        bson-to-json io data.bson
        bson-to-json batch a.bson b.bson --overwrite
        bson-to-json -d ./dumps
    """
    ctx.ensure_object(dict)
    config_path = Path(config_dir).expanduser()
    manager = ConfigManager(config_path)
    ctx.obj['DEBUG'] = debug
    ctx.obj['CONFIG'] = manager

    # Setup logging system
    try:
        app_log = setup_logging(
            str(config_path),
            manager.get('log_level'),
            console_level="DEBUG" if debug else "WARNING",
            log_to_file=manager.get('log_to_file')
        )
    except OSError as e:
        click.echo(click.style(f"✗ Error: cannot create log directory in {config_path}: {str(e)}", fg='red'), err=True)
        ctx.exit(1)
    ctx.call_on_close(app_log.cleanup)

    # The config was read before any handler existed
    for message in manager.load_warnings:
        logger.warning(message)

    logger.debug(f"Config directory: {config_path}")
    logger.debug(f"Configuration: {manager.as_dict()}")

    if ctx.invoked_subcommand is None:
        ctx.invoke(batch)

cli.add_command(convert_io)
cli.add_command(batch)
cli.add_command(config)

def main():
    """Console script entry point."""
    cli(obj={})

if __name__ == '__main__':
    main()
