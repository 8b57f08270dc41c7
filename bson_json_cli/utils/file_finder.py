"""
Input file discovery for bson-to-json.
"""
import logging
from pathlib import Path
from typing import List
from .debug_logger import debug_step

# Get logger for this module
logger = logging.getLogger(__name__)

@debug_step("Listing input files in directory")
def list_files(directory: Path, extension: str = "bson") -> List[Path]:
    """
    List the regular files directly inside a directory with a given extension.

    Args:
        directory: Directory to scan (subdirectories are not descended into)
        extension: Extension without the dot, matched case-insensitively

    Returns:
        list: Matching file paths, sorted by name
    """
    wanted = f".{extension.lower()}"
    files = []
    for entry in Path(directory).iterdir():
        try:
            if not entry.is_file():
                continue
        except OSError as e:
            logger.debug(f"Skipping unreadable entry {entry}: {str(e)}")
            continue
        if entry.suffix.lower() == wanted:
            files.append(entry)

    files.sort(key=lambda path: path.name)
    logger.debug(f"Found {len(files)} *{wanted} files in directory {directory}")
    return files

def convert_extension(path: Path, new_extension: str = "json") -> Path:
    """Replace the final suffix of a file name, keeping its directory."""
    path = Path(path)
    if path.suffix:
        return path.with_suffix(f".{new_extension}")
    return path.with_name(f"{path.name}.{new_extension}")
