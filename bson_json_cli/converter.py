"""
BSON to JSON conversion pipeline.

Reads whole inputs into memory, decodes and validates them, maps them to
Extended JSON and writes the rendered bytes to their destination.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, List, Optional, Union

from .core import JSONMode, decode_all, decode_document, map_document, map_documents, render
from .utils.debug_logger import debug_step
from .utils.exceptions import (
    BSONValidationError, ConversionError, InputError, OutputError,
    OutputExistsError,
)
from .utils.file_finder import convert_extension
from .utils.logger import log_crash

# Get logger for this module
logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

STDIN_NAME = "<stdin>"


@dataclass
class ConversionOptions:
    """Settings shared by every conversion in a run."""
    overwrite: bool = False
    indent: int = 2
    json_mode: JSONMode = JSONMode.RELAXED
    all_documents: bool = False


@dataclass
class FileResult:
    """Outcome of converting one input file."""
    source: Path
    destination: Optional[Path] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    """Per-file results of a batch run."""
    results: List[FileResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded


class BsonJsonConverter:
    """Converts BSON buffers, streams and files to JSON."""

    def __init__(self, options: Optional[ConversionOptions] = None):
        self.options = options or ConversionOptions()

    @debug_step("Converting BSON buffer")
    def convert_bytes(self, data: bytes, source: str = STDIN_NAME) -> bytes:
        """
        Decode, validate, map and render one BSON buffer.

        Args:
            data: Raw BSON bytes
            source: Name used in error messages

        Returns:
            bytes: UTF-8 JSON text

        Raises:
            BSONValidationError: If the buffer is not well-formed BSON
            EncodingError: If the decoded values cannot be rendered
        """
        if self.options.all_documents:
            documents, result = decode_all(data)
            if not result.is_valid:
                raise BSONValidationError.from_result(result, source)
            tree = map_documents(documents, self.options.json_mode)
            logger.debug(f"Decoded {len(documents)} documents from {source}")
        else:
            document, result = decode_document(data)
            if not result.is_valid:
                raise BSONValidationError.from_result(result, source)
            tree = map_document(document, self.options.json_mode)
            logger.debug(f"Decoded document with {len(document)} keys from {source}")
        return render(tree, self.options.indent)

    def read_stream(self, stream: BinaryIO, source: str = STDIN_NAME) -> bytes:
        """Read a binary stream to the end."""
        try:
            data = stream.read()
        except OSError as e:
            raise InputError(f"Cannot read input {source}: {str(e)}", source)
        if not data:
            raise InputError("Empty input.", source)
        return data

    def read_input(self, path: PathLike) -> bytes:
        """Read an input file to the end."""
        path = Path(path)
        if path.is_dir():
            raise InputError(f"Input path is a directory: {path}", str(path))
        try:
            with open(path, 'rb') as input_file:
                return self.read_stream(input_file, str(path))
        except FileNotFoundError:
            raise InputError(f"Input file not found: {path}", str(path))
        except PermissionError:
            raise InputError(f"Permission denied reading input file: {path}", str(path))
        except OSError as e:
            raise InputError(f"Cannot read input file {path}: {e.strerror or str(e)}", str(path))

    def write_output(self, path: PathLike, payload: bytes):
        """
        Write rendered JSON to a file, honouring the overwrite policy.

        Without overwrite the file is created exclusively, so an existing
        destination is never touched.
        """
        path = Path(path)
        mode = 'wb' if self.options.overwrite else 'xb'
        try:
            with open(path, mode) as output_file:
                output_file.write(payload)
        except FileExistsError:
            raise OutputExistsError(
                f"File already exists. Specify overwrite to ignore. {path}", str(path)
            )
        except OSError as e:
            raise OutputError(f"Cannot access output file: {path}: {e.strerror or str(e)}", str(path))
        logger.debug(f"Wrote {len(payload)} bytes to {path}")

    def resolve_destination(self, source: PathLike, destination: Optional[PathLike] = None) -> Path:
        """Pick the output path for an input, refusing to write over the input itself."""
        source = Path(source)
        target = Path(destination) if destination is not None else convert_extension(source, "json")
        if target.resolve() == source.resolve():
            raise OutputError(f"Output path would overwrite the input file: {target}", str(target))
        return target

    def convert_file(self, source: PathLike, destination: Optional[PathLike] = None) -> Path:
        """Convert one file and return the path written."""
        source = Path(source)
        target = self.resolve_destination(source, destination)
        payload = self.convert_bytes(self.read_input(source), str(source))
        self.write_output(target, payload)
        return target

    def convert_batch(self, sources: Iterable[PathLike],
                      on_start: Optional[Callable[[Path], None]] = None,
                      on_result: Optional[Callable[[FileResult], None]] = None) -> BatchReport:
        """
        Convert files one after another, isolating failures per file.

        Args:
            sources: Input paths
            on_start: Called with each path before it is processed
            on_result: Called with each FileResult as soon as it is known

        Returns:
            BatchReport: One result per input, in input order
        """
        report = BatchReport()
        for source in sources:
            source = Path(source)
            if on_start:
                on_start(source)

            result = FileResult(source=source)
            try:
                result.destination = self.convert_file(source)
            except ConversionError as e:
                logger.debug(f"Conversion failed for {source}: {str(e)}")
                result.error = str(e)
            except Exception as e:
                log_crash(e, context=f"batch conversion of {source}")
                result.error = f"Unexpected error: {str(e)}"

            report.results.append(result)
            if on_result:
                on_result(result)

        logger.debug(f"Batch finished: {report.succeeded}/{report.total} converted")
        return report
