"""Check that a file really is of the type it claims to be."""

from __future__ import annotations

import enum
import os
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]

JPEG_SIGNATURE = b"\xff\xd8\xff"
TEXT_SAMPLE_SIZE = 512

# Bytes accepted by the C locale's isprint() or isspace().
_TEXT_BYTES = frozenset(range(0x20, 0x7F)) | frozenset(b"\t\n\v\f\r")


class FileType(enum.Enum):
    """File types the validator knows about."""

    JPEG = "jpeg"
    TXT = "txt"


def file_exists(path: PathLike) -> bool:
    """Return True if the file can be opened for reading."""
    try:
        with open(path, "rb"):
            return True
    except OSError:
        return False


def read_header_bytes(path: PathLike, num_bytes: int) -> bytes:
    """Return the first ``num_bytes`` bytes of the file.

    Raises ValueError if the file is shorter than that.
    """
    with open(path, "rb") as handle:
        header = handle.read(num_bytes)
    if len(header) < num_bytes:
        raise ValueError("Failed to read file header.")
    return header


def _looks_like_text(path: PathLike) -> bool:
    with open(path, "rb") as handle:
        sample = handle.read(TEXT_SAMPLE_SIZE)
    return all(byte in _TEXT_BYTES for byte in sample)


def validate_file_type(path: PathLike, expected_type: FileType) -> bool:
    """Return True if the file's contents match ``expected_type``.

    JPEG files are recognised by their signature; text files by having only
    printable or whitespace characters in their first 512 bytes.
    """
    if not isinstance(expected_type, FileType):
        raise ValueError("Unsupported file type.")
    if not file_exists(path):
        raise FileNotFoundError("File does not exist.")

    if expected_type is FileType.JPEG:
        return read_header_bytes(path, len(JPEG_SIGNATURE)) == JPEG_SIGNATURE
    if expected_type is FileType.TXT:
        try:
            return _looks_like_text(Path(path))
        except OSError:
            return False
    raise ValueError("Unsupported file type.")