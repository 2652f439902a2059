"""Command line entry point: validate a file and compress or decompress it."""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import Optional, Sequence

from squeezer.lossy import DEFAULT_QUALITY, compress_jpeg
from squeezer.textcodec import compress_txt_file, decompress_txt_file
from squeezer.validator import FileType, validate_file_type

DECOMPRESS_FLAG = "--decompress"
TXT_COMPRESSED_NAME = "compressed.bin"
TXT_DECOMPRESSED_NAME = "output.txt"
JPEG_OUTPUT_NAME = "compressed.jpeg"

_TYPES = {"jpeg": FileType.JPEG, "txt": FileType.TXT}
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    """Parse a leading integer the way C's atoi does; 0 if there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _usage(prog: str) -> str:
    return (
        f"Usage: {prog} <file_path> <file_type> "
        "<[Quality for jpeg] or [--decompress for txt] (optional)>\n"
        "Supported file types:\n"
        "  jpeg\n"
        "  txt\n"
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command; return the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    prog = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "squeezer"

    if len(args) < 2:
        sys.stderr.write(_usage(prog))
        return 1

    quality = _atoi(args[2]) if len(args) == 3 else DEFAULT_QUALITY
    file_path = args[0]
    type_name = args[1].lower()
    expected_type = _TYPES.get(type_name)
    if expected_type is None:
        print(f"Unsupported file type: {type_name}", file=sys.stderr)
        return 1

    extra = args[2] if len(args) > 2 else None
    try:
        is_valid = validate_file_type(file_path, expected_type)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if is_valid or extra == DECOMPRESS_FLAG:
        print(f"The file is a valid {type_name} file.")
    else:
        print(f"The file is NOT a valid {type_name} file.")

    try:
        if expected_type is FileType.TXT:
            if len(args) == 3 and extra == DECOMPRESS_FLAG:
                decompress_txt_file(file_path, TXT_DECOMPRESSED_NAME)
                print(f"Decompression complete. Output written to {TXT_DECOMPRESSED_NAME}")
            else:
                compress_txt_file(file_path, TXT_COMPRESSED_NAME)
                print(f"Compression complete. Output written to {TXT_COMPRESSED_NAME}")
        else:
            compress_jpeg(file_path, JPEG_OUTPUT_NAME, quality)
            print(f"Compression complete: {JPEG_OUTPUT_NAME}")
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())