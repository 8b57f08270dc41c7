"""
Options and helpers shared by the conversion commands.
"""
import click
from typing import Callable, Optional
from ..converter import ConversionOptions
from ..core import JSONMode
from ..utils.config_manager import ConfigManager
from ..utils.validators import MAX_INDENT, VALID_JSON_MODES

def conversion_options(func: Callable) -> Callable:
    """Attach the output formatting options to a command."""
    func = click.option('--all-documents', '-a', is_flag=True,
                        help='Treat the input as concatenated documents and write a JSON array')(func)
    func = click.option('--indent', type=click.IntRange(0, MAX_INDENT), default=None,
                        help='Spaces per indentation level (default: 2, or the configured value)')(func)
    func = click.option('--json-mode', type=click.Choice(VALID_JSON_MODES, case_sensitive=False), default=None,
                        help='Extended JSON flavour (default: relaxed, or the configured value)')(func)
    return func

def get_config(ctx: click.Context) -> ConfigManager:
    """Get the configuration manager stored on the context, creating it if needed."""
    ctx.ensure_object(dict)
    if 'CONFIG' not in ctx.obj:
        ctx.obj['CONFIG'] = ConfigManager()
    return ctx.obj['CONFIG']

def build_options(ctx: click.Context, overwrite: bool, json_mode: Optional[str],
                  indent: Optional[int], all_documents: bool) -> ConversionOptions:
    """Merge command-line flags over the stored configuration."""
    config = get_config(ctx)
    return ConversionOptions(
        overwrite=overwrite or config.get('overwrite'),
        indent=indent if indent is not None else config.get('indent'),
        json_mode=JSONMode((json_mode or config.get('json_mode')).lower()),
        all_documents=all_documents
    )
