from __future__ import annotations
import csv, codecs, logging, math, zipfile
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple
from ..core.types import BinaryInput, Dataset, Record, Value
from ..core.utils import _open_binary_stream, _open_archive_stream
from ..core.errors import ExtractionError, ParseError, SchemaError
from ..core.constants import (
    _DELIMITED_STREAM_CHUNK_SIZE, _ZIP_PREFERRED_EXTENSIONS, REQUIRED_COLUMNS
)

logger = logging.getLogger(__name__)

_ARCHIVE_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, NotImplementedError, EOFError)


def coerce_value(raw: Any) -> Value:
    """Numeric text becomes a number (comma as decimal separator); anything else is trimmed text."""
    text = "" if raw is None else str(raw).strip()
    if not text:
        return text
    # ASCII text without digit separators only
    if not text.isascii() or "_" in text:
        return text
    try:
        parsed = float(text.replace(",", ".", 1))
    except ValueError:
        return text
    if math.isnan(parsed) or math.isinf(parsed):
        return text
    if parsed.is_integer():
        return int(parsed)
    return parsed


class _HeaderNormalizer:
    """Normalizes and deduplicates column headers for delimited inputs."""

    def __init__(self) -> None:
        self._base_counts: Dict[str, int] = {}
        self._used: Set[str] = set()

    def _clean(self, raw: Any, index: int) -> str:
        text = "" if raw is None else str(raw)
        text = text.lstrip("\ufeff").strip()
        if not text:
            return f"column_{index + 1}"
        return text

    def _allocate(self, base: str) -> str:
        count = self._base_counts.get(base, 0)
        candidate = base if count == 0 else f"{base}_{count + 1}"
        while candidate in self._used:
            count += 1
            candidate = f"{base}_{count + 1}"
        self._base_counts[base] = count + 1
        self._used.add(candidate)
        return candidate

    def normalize(self, fieldnames: Sequence[Any]) -> List[str]:
        return [self._allocate(self._clean(name, index)) for index, name in enumerate(fieldnames)]


def parse_records(
    body: BinaryInput,
    *,
    source_name: str = "dataset.csv",
    delimiter: str = ",",
    required_columns: Sequence[str] = REQUIRED_COLUMNS,
) -> Dataset:
    stream, should_close = _open_binary_stream(body)
    decoder = codecs.getincrementaldecoder("utf-8")("replace")
    buffer = ""
    bytes_read = 0

    def _iter_lines() -> Iterable[str]:
        nonlocal buffer, bytes_read
        while True:
            chunk = stream.read(_DELIMITED_STREAM_CHUNK_SIZE)
            if not chunk:
                break
            if isinstance(chunk, bytearray):
                chunk = bytes(chunk)
            if not isinstance(chunk, bytes):
                raise TypeError(f"Delimited dataset chunk from {source_name} must be bytes-like")
            bytes_read += len(chunk)
            decoded = decoder.decode(chunk)
            if decoded:
                buffer += decoded
            while True:
                newline_index = buffer.find("\n")
                if newline_index == -1:
                    break
                line = buffer[: newline_index + 1]
                yield line
                buffer = buffer[newline_index + 1 :]
        remainder = decoder.decode(b"", final=True)
        if remainder:
            buffer += remainder
        if buffer:
            yield buffer
            buffer = ""

    records: List[Record] = []
    skipped = 0
    headers: List[str] = []
    try:
        reader = csv.reader(_iter_lines(), delimiter=delimiter)
        try:
            first_row = next(reader)
        except StopIteration:
            first_row = None

        if first_row is not None:
            headers = _HeaderNormalizer().normalize(first_row)
        missing = set(required_columns).difference(headers)
        if missing:
            raise SchemaError(missing)

        for raw_row in reader:
            if not raw_row:
                continue
            if len(raw_row) != len(headers):
                skipped += 1
                logger.debug(
                    "skipping malformed row %d in %s: expected %d fields, got %d",
                    reader.line_num, source_name, len(headers), len(raw_row),
                )
                continue
            records.append({name: coerce_value(cell) for name, cell in zip(headers, raw_row)})
    except csv.Error as exc:
        raise ParseError(f"Malformed delimited data in {source_name}: {exc}") from exc
    finally:
        if should_close:
            stream.close()

    if skipped:
        logger.warning("skipped %d malformed rows while parsing %s", skipped, source_name)

    return Dataset(
        records=tuple(records),
        columns=tuple(headers),
        source_name=source_name,
        bytes_read=bytes_read,
        skipped_rows=skipped,
    )


def _zip_member_priority(name: str) -> Tuple[int, str]:
    lowered = name.lower()
    for index, ext in enumerate(_ZIP_PREFERRED_EXTENSIONS):
        if lowered.endswith(ext):
            return index, lowered
    return len(_ZIP_PREFERRED_EXTENSIONS), lowered


def _select_member(archive: zipfile.ZipFile, member: Optional[str]) -> zipfile.ZipInfo:
    members = [info for info in archive.infolist() if not info.is_dir()]
    if member:
        for info in members:
            if info.filename == member or info.filename.rsplit("/", 1)[-1] == member:
                return info
        logger.warning("archive has no member named %s, falling back to the first tabular file", member)
    tabular = [info for info in members if _zip_member_priority(info.filename)[0] < len(_ZIP_PREFERRED_EXTENSIONS)]
    if not tabular:
        raise ExtractionError("ZIP archive does not contain a supported dataset")
    tabular.sort(key=lambda info: _zip_member_priority(info.filename))
    return tabular[0]


def ingest_archive(
    body: BinaryInput,
    *,
    member: Optional[str] = None,
    source_name: str = "dataset.zip",
) -> Dataset:
    """Extract the tabular member of a ZIP archive and parse it without touching shared paths."""
    try:
        with _open_archive_stream(body) as archive_stream:
            with zipfile.ZipFile(archive_stream) as archive:
                info = _select_member(archive, member)
                logger.info("extracting %s from %s", info.filename, source_name)
                delimiter = "\t" if info.filename.lower().endswith(".tsv") else ","
                with archive.open(info, "r") as handle:
                    return parse_records(handle, source_name=info.filename, delimiter=delimiter)
    except _ARCHIVE_ERRORS as exc:
        raise ExtractionError(f"Unable to extract {source_name}: {exc}") from exc


def extract_member(body: BinaryInput, member: Optional[str] = None, *, source_name: str = "dataset.zip") -> bytes:
    try:
        with _open_archive_stream(body) as archive_stream:
            with zipfile.ZipFile(archive_stream) as archive:
                info = _select_member(archive, member)
                return archive.read(info)
    except _ARCHIVE_ERRORS as exc:
        raise ExtractionError(f"Unable to extract {source_name}: {exc}") from exc
