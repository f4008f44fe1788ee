"""Whole-file binary I/O for XBL documents."""

from pathlib import Path
from typing import Union

from xbl.shared.errors import FileAccessError
from xbl.shared.logging import get_logger

PathLike = Union[str, Path]

logger = get_logger(__name__, component="files")


def read_binary(path: PathLike) -> bytes:
    """Read an entire file into memory.

    Raises:
        FileAccessError: If the path cannot be opened or read
    """
    path_obj = Path(path)
    try:
        with path_obj.open("rb") as file:
            data = file.read()
    except FileNotFoundError as e:
        raise FileAccessError("Failed to find file", str(path_obj)) from e
    except OSError as e:
        raise FileAccessError(f"Failed to read file ({e.strerror})", str(path_obj)) from e

    logger.debug("Read file", extra={"file_path": str(path_obj), "bytes": len(data)})
    return data


def write_binary(path: PathLike, data: bytes) -> None:
    """Write ``data`` to ``path``, replacing any existing content.

    Raises:
        FileAccessError: If the path cannot be opened or written
    """
    path_obj = Path(path)
    try:
        with path_obj.open("wb") as file:
            file.write(data)
    except OSError as e:
        raise FileAccessError(
            f"File cannot be opened/written ({e.strerror})", str(path_obj)
        ) from e

    logger.debug("Wrote file", extra={"file_path": str(path_obj), "bytes": len(data)})
