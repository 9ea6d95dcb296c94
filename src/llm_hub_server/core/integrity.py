"""Lightweight integrity checks for downloaded model files.

Format-specific signature checks (magic bytes) combined with relaxed size
ratios. The ratios are deliberately loose because quantized variants and
metadata-only size estimates rarely match the file on disk exactly.
"""

import zipfile
from pathlib import Path

from llm_hub_server.utils import get_logger

logger = get_logger(__name__)

MIN_MODEL_BYTES = 1024 * 1024
MIN_UNPARSED_CONTAINER_BYTES = 10 * 1024 * 1024

GGUF_MAGIC = b"GGUF"
ZIP_MAGIC = b"PK\x03\x04"

GGUF_RATIO_WITH_MAGIC = 0.50
DEFAULT_RATIO = 0.90


def is_model_file_valid(
    path: str | Path,
    model_format: str,
    expected_size_bytes: int = 0,
) -> bool:
    """Check whether a model file or directory looks complete.

    Args:
        path: Model file, or directory for multi-file models
        model_format: Declared format (gguf, bin, task, litertlm, onnx, ...)
        expected_size_bytes: Size from the catalog, 0 when unknown

    Returns:
        True if the model passes the checks for its format
    """
    path = Path(path)
    try:
        return _validate(path, model_format, expected_size_bytes)
    except OSError as e:
        logger.warning("integrity.io_error", path=str(path), error=str(e))
        return False


def _validate(path: Path, model_format: str, expected_size_bytes: int) -> bool:
    if not path.exists():
        logger.debug("integrity.missing", path=str(path))
        return False

    actual_size = _actual_size(path)
    logger.debug(
        "integrity.validating",
        name=path.name,
        format=model_format,
        is_dir=path.is_dir(),
        actual=actual_size,
        expected=expected_size_bytes,
    )

    if actual_size < MIN_MODEL_BYTES:
        logger.warning("integrity.too_small", name=path.name, actual=actual_size)
        return False

    fmt = model_format.lower()
    if fmt in ("gguf", "bin"):
        magic_ok = _has_gguf_magic(path)
        threshold = GGUF_RATIO_WITH_MAGIC if magic_ok else DEFAULT_RATIO
        size_ok = _size_ok(actual_size, expected_size_bytes, threshold)
        if not magic_ok:
            logger.warning("integrity.gguf_magic_mismatch", name=path.name)
        if not size_ok:
            _log_size_failure(path, fmt, actual_size, expected_size_bytes, threshold)
        return magic_ok and size_ok

    if fmt in ("task", "litertlm"):
        container_ok = _is_task_container(path, actual_size)
        size_ok = _size_ok(actual_size, expected_size_bytes, DEFAULT_RATIO)
        if not container_ok:
            logger.warning("integrity.container_mismatch", name=path.name)
        if not size_ok:
            _log_size_failure(path, fmt, actual_size, expected_size_bytes, DEFAULT_RATIO)
        return container_ok and size_ok

    size_ok = _size_ok(actual_size, expected_size_bytes, DEFAULT_RATIO)
    if not size_ok:
        _log_size_failure(path, fmt, actual_size, expected_size_bytes, DEFAULT_RATIO)
    return size_ok


def _actual_size(path: Path) -> int:
    # Only immediate children count for multi-file models.
    if path.is_dir():
        return sum(child.stat().st_size for child in path.iterdir() if child.is_file())
    return path.stat().st_size


def _size_ok(actual: int, expected: int, threshold: float) -> bool:
    if expected <= 0:
        return True
    return actual >= int(expected * threshold)


def _log_size_failure(path: Path, fmt: str, actual: int, expected: int, threshold: float) -> None:
    logger.warning(
        "integrity.size_failure",
        name=path.name,
        format=fmt,
        actual=actual,
        minimum=int(expected * threshold),
        expected=expected,
    )


def _read_magic(path: Path) -> bytes:
    with open(path, "rb") as f:
        return f.read(4)


def _has_gguf_magic(path: Path) -> bool:
    if path.is_dir():
        return False
    try:
        return _read_magic(path) == GGUF_MAGIC
    except OSError:
        return False


def _is_task_container(path: Path, actual_size: int) -> bool:
    """Zip-based container check with a size fallback.

    Some valid containers use a flatbuffer layout zipfile cannot parse, so
    anything of at least 10 MiB is accepted once both zip checks fail.
    """
    if path.is_file():
        try:
            if _read_magic(path) == ZIP_MAGIC:
                return True
        except OSError:
            pass

        try:
            with zipfile.ZipFile(path):
                return True
        except (OSError, zipfile.BadZipFile):
            pass

    return actual_size >= MIN_UNPARSED_CONTAINER_BYTES
