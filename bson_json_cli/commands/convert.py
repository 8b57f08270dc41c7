"""
Single-file conversion command for bson-to-json.
"""
import click
import sys
import logging
from pathlib import Path
from typing import Optional
from ..converter import BsonJsonConverter, STDIN_NAME
from ..utils.exceptions import ConversionError, InputError
from ..utils.debug_logger import debug_log, debug_step
from ..utils.logger import log_crash
from .common import build_options, conversion_options

# Get logger for this module
logger = logging.getLogger(__name__)

def _pick(option_value: Optional[str], argument_value: Optional[str], name: str) -> Optional[str]:
    """Accept a path given either as an option or as a positional argument."""
    if option_value and argument_value and option_value != argument_value:
        raise click.UsageError(f"{name} path given both as an option and as an argument")
    return option_value or argument_value

@debug_step("Resolving output destination")
def resolve_io_destination(converter: BsonJsonConverter, input_path: Optional[str],
                           output_path: Optional[str], use_std_out: bool) -> Optional[Path]:
    """
    Resolve where the JSON goes.

    An explicit output path wins, then standard output, then the input path
    with its extension replaced by .json.

    Returns:
        Path: Output file, or None for standard output
    """
    if output_path:
        if input_path:
            return converter.resolve_destination(input_path, output_path)
        return Path(output_path)
    if use_std_out:
        return None
    if input_path:
        return converter.resolve_destination(input_path)
    raise InputError("Input file is required if --use-std-out is not specified")

@click.command('io')
@click.option('--use-std-out', is_flag=True, help='Use standard out instead of creating a new file.')
@click.option('--overwrite', '-f', is_flag=True, help='Automatically overwrite existing files')
@click.option('--input', '-i', 'input_option', type=click.Path(), help='Path to file to convert (default: standard input)')
@click.option('--output', '-o', 'output_option', type=click.Path(), help='Destination to write output')
@conversion_options
@click.argument('input_file', required=False, type=click.Path())
@click.argument('output_file', required=False, type=click.Path())
@click.pass_context
@debug_log
def convert_io(ctx, use_std_out: bool, overwrite: bool, input_option: Optional[str],
               output_option: Optional[str], json_mode: Optional[str], indent: Optional[int],
               all_documents: bool, input_file: Optional[str], output_file: Optional[str]):
    """Convert a single BSON file or standard input.

    Examples:
        bson-to-json io data.bson
        bson-to-json io -i data.bson -o out.json -f
        cat data.bson | bson-to-json io --use-std-out
    """
    if input_option and not output_option and input_file and output_file is None:
        # With --input set, a lone positional is the output path
        input_file, output_file = None, input_file
    input_path = _pick(input_option, input_file, "Input")
    output_path = _pick(output_option, output_file, "Output")

    try:
        options = build_options(ctx, overwrite, json_mode, indent, all_documents)
        converter = BsonJsonConverter(options)

        # Resolve the destination before touching stdin
        destination = resolve_io_destination(converter, input_path, output_path, use_std_out)

        if input_path:
            logger.debug(f"Reading input file {input_path}")
            data = converter.read_input(input_path)
        else:
            logger.debug("Reading standard input")
            data = converter.read_stream(sys.stdin.buffer)

        payload = converter.convert_bytes(data, input_path or STDIN_NAME)

        if destination is None:
            stdout = sys.stdout.buffer
            stdout.write(payload)
            stdout.flush()
            return 0

        converter.write_output(destination, payload)
        click.echo(click.style(f"✓ Success: {destination}", fg='green'))
        return 0

    except ConversionError as e:
        logger.debug(f"Error in convert_io: {str(e)}")
        click.echo(click.style(f"✗ Error: {str(e)}", fg='red'), err=True)
        sys.exit(1)
    except Exception as e:
        logger.debug(f"Unexpected error in convert_io: {str(e)}")
        log_crash(e, context="io conversion")
        click.echo(click.style(f"✗ Error: Unexpected error: {str(e)}", fg='red'), err=True)
        sys.exit(1)
