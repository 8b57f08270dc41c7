"""
Batch conversion command for bson-to-json.
"""
import click
import sys
import logging
from pathlib import Path
from typing import Optional, Tuple
from ..converter import BsonJsonConverter, FileResult
from ..utils.exceptions import ConfigError
from ..utils.file_finder import list_files
from ..utils.logger import get_logger
from ..utils.validators import validate_directory
from ..utils.debug_logger import debug_log
from .common import build_options, conversion_options, get_config

# Get logger for this module
logger = logging.getLogger(__name__)

def _report_start(source: Path):
    click.echo(f"Processing: {source}")

def _report_result(result: FileResult):
    if result.success:
        click.echo(click.style(f"✓ Success: {result.destination}", fg='green'))
    else:
        click.echo(click.style(f"✗ Failed: {result.source}: {result.error}", fg='red'))
    try:
        get_logger().log_conversion(str(result.source), str(result.destination), result.success, result.error or "")
    except RuntimeError:
        # Logging was never set up (command invoked outside the main group)
        logger.debug(f"Result for {result.source}: {'ok' if result.success else result.error}")

@click.command('batch')
@click.option('--overwrite', '-f', is_flag=True, help='Automatically overwrite existing files')
@click.option('--directory', '-d', type=click.Path(file_okay=False), default=None,
              help='Directory to scan when no files are given (default: current directory)')
@click.option('--ignore-failures', is_flag=True,
              help='Exit with status 0 even when some files failed to convert')
@conversion_options
@click.argument('input_files', nargs=-1, type=click.Path())
@click.pass_context
@debug_log
def batch(ctx, overwrite: bool, directory: Optional[str], ignore_failures: bool,
          json_mode: Optional[str], indent: Optional[int], all_documents: bool,
          input_files: Tuple[str, ...]):
    """Convert several BSON files, each next to its input.

    Without file arguments every *.bson file in the scan directory is
    converted. A failing file is reported and the run goes on.

    Examples:
        bson-to-json batch a.bson b.bson
        bson-to-json batch -d ./dumps --overwrite
        bson-to-json -f
    """
    config = get_config(ctx)
    options = build_options(ctx, overwrite, json_mode, indent, all_documents)

    if input_files:
        files = [Path(path) for path in input_files]
    else:
        scan_dir = Path(directory) if directory else Path.cwd()
        click.echo(f"Scanning: {scan_dir}")
        try:
            validate_directory(scan_dir)
            files = list_files(scan_dir, config.get('extension'))
        except (ConfigError, OSError) as e:
            logger.debug(f"Error scanning {scan_dir}: {str(e)}")
            click.echo(click.style(f"✗ Error: {str(e)}", fg='red'), err=True)
            sys.exit(1)
        click.echo(f"Found {len(files)} files.")

    converter = BsonJsonConverter(options)
    report = converter.convert_batch(files, on_start=_report_start, on_result=_report_result)

    colour = 'green' if report.failed == 0 else 'yellow'
    click.echo(click.style(f"Converted {report.succeeded}/{report.total} files", fg=colour))

    if report.failed and not ignore_failures:
        sys.exit(1)
    return 0
