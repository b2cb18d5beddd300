from __future__ import annotations
import io, contextlib, tempfile, logging
from typing import Any, Iterator, Optional, Tuple, IO, cast
from .types import BinaryInput
from .errors import ChartRenderError
from .constants import _ARCHIVE_STREAM_CHUNK_SIZE

logger = logging.getLogger(__name__)

_PYPLOT: Any = None


def load_pyplot():
    """Import pyplot on the headless Agg backend the first time a chart is drawn."""
    global _PYPLOT
    if _PYPLOT is None:
        try:
            import matplotlib  # type: ignore

            matplotlib.use("Agg")
            import matplotlib.pyplot as plt  # type: ignore
        except ImportError as exc:
            raise ChartRenderError("matplotlib is required to render chart images") from exc
        _PYPLOT = plt
    return _PYPLOT


def _open_binary_stream(body: BinaryInput) -> Tuple[IO[bytes], bool]:
    """Return ``(stream, owned)``; in-memory archives get a BytesIO the caller must close."""
    if isinstance(body, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(body)), True
    if hasattr(body, "read"):
        return cast(IO[bytes], body), False
    raise TypeError(f"expected archive bytes or a binary stream, got {type(body).__name__}")


@contextlib.contextmanager
def _open_archive_stream(body: BinaryInput) -> Iterator[IO[bytes]]:
    """Yield a seekable stream over ``body``.

    Non-seekable inputs are spooled into a private temporary file that is
    removed on exit, so two runs never share an on-disk path.
    """
    stream, should_close = _open_binary_stream(body)
    temp_file: Optional[Any] = None
    try:
        try:
            stream.seek(0)
        except (AttributeError, OSError, io.UnsupportedOperation):
            temp_file = tempfile.NamedTemporaryFile(
                prefix="loanlens-archive-", suffix=".zip"
            )
            while True:
                chunk = stream.read(_ARCHIVE_STREAM_CHUNK_SIZE)
                if not chunk:
                    break
                temp_file.write(chunk)
            temp_file.flush()
            temp_file.seek(0)
            logger.debug("spooled archive stream to %s", temp_file.name)
            if should_close:
                stream.close()
                should_close = False
            stream = temp_file
        yield stream
    finally:
        if should_close:
            stream.close()
        if temp_file is not None:
            temp_file.close()


def _figure_to_png(plt, fig, dpi: int) -> bytes:
    buffer = io.BytesIO()
    try:
        fig.savefig(buffer, format="png", dpi=dpi)
    finally:
        plt.close(fig)
    buffer.seek(0)
    return buffer.getvalue()
