"""Decoder for the block-transform image format written by ``blockencoder``.

Decoding reverses the encoder's steps. The Huffman-coded coefficients are
decoded, dequantized and inverse-DCT transformed, then placed back into
8x8 blocks. Finally the YCbCr values are converted to RGB and saved as PNG.
"""

from __future__ import annotations

import math
import os
import struct
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Union

from PIL import Image

from squeezer.blockencoder import (
    BLOCK_SIZE,
    LEAF_TAG,
    QUANT_TABLE,
    CoefficientNode,
)

PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_WIDTH = 200
DEFAULT_HEIGHT = 200
DEFAULT_EXPECTED_SIZE = 59968

_COEFFICIENT = struct.Struct("<i")
_WORD = struct.Struct("<Q")
_WORD_BITS = 64
_BLOCK_AREA = BLOCK_SIZE * BLOCK_SIZE

_COS = [
    [math.cos((2 * x + 1) * u * math.pi / 16.0) for u in range(BLOCK_SIZE)]
    for x in range(BLOCK_SIZE)
]
_SCALE = [1 / math.sqrt(2.0)] + [1.0] * (BLOCK_SIZE - 1)


def _round_half_away(value: float) -> int:
    if value >= 0:
        return math.floor(value + 0.5)
    return -math.floor(-value + 0.5)


def clamp(value: int, min_val: int, max_val: int) -> int:
    """Limit ``value`` to the range [min_val, max_val]."""
    if value < min_val:
        return min_val
    if value > max_val:
        return max_val
    return value


def _read_node(stream: BinaryIO) -> tuple[Optional[CoefficientNode], bool]:
    """Read one node; return it and whether it is internal."""
    tag = stream.read(1)
    if not tag:
        return None, False
    if tag[0] == LEAF_TAG:
        raw = stream.read(_COEFFICIENT.size)
        if len(raw) < _COEFFICIENT.size:
            raise ValueError("Failed to read leaf node value.")
        return CoefficientNode(_COEFFICIENT.unpack(raw)[0]), False
    return CoefficientNode(None), True


def load_huffman_tree(stream: BinaryIO) -> Optional[CoefficientNode]:
    """Read a pre-order serialized tree from a binary stream.

    Returns None if the stream is already exhausted. Children missing
    because the stream ends early are left as None.
    """
    root, internal = _read_node(stream)
    if root is None:
        return None
    pending: list[list] = [[root, 0]] if internal else []
    while pending:
        entry = pending[-1]
        parent = entry[0]
        child, child_internal = _read_node(stream)
        if entry[1] == 0:
            parent.left = child
            entry[1] = 1
        else:
            parent.right = child
            pending.pop()
        if child is not None and child_internal:
            pending.append([child, 0])
    return root


def _iter_stream_bits(stream: BinaryIO):
    while True:
        raw = stream.read(_WORD.size)
        if len(raw) < _WORD.size:
            raise ValueError("unexpected end of encoded data")
        word = _WORD.unpack(raw)[0]
        for shift in range(_WORD_BITS - 1, -1, -1):
            yield (word >> shift) & 1


def decode_huffman_data(
    stream: BinaryIO, root: CoefficientNode, total_coefficients: int
) -> list[int]:
    """Decode ``total_coefficients`` values from the packed bit stream."""
    if total_coefficients <= 0:
        return []
    if root.is_leaf():
        if root.value is None:
            raise ValueError("corrupt Huffman tree")
        return [root.value] * total_coefficients

    decoded: list[int] = []
    node = root
    for bit in _iter_stream_bits(stream):
        node = node.right if bit else node.left
        if node is None:
            raise ValueError("bit stream does not match Huffman tree")
        if node.is_leaf():
            if node.value is None:
                raise ValueError("corrupt Huffman tree")
            decoded.append(node.value)
            if len(decoded) >= total_coefficients:
                break
            node = root
    return decoded


def dequantize(block: Sequence[int], quant_table: Sequence[int]) -> list[int]:
    """Multiply each coefficient by its table entry."""
    return [_round_half_away(c * float(q)) for c, q in zip(block, quant_table)]


def apply_idct(block: Sequence[int]) -> list[int]:
    """Return the rounded inverse 2-D DCT of a 64-value block."""
    result = [0] * _BLOCK_AREA
    for x in range(BLOCK_SIZE):
        for y in range(BLOCK_SIZE):
            total = sum(
                _SCALE[u] * _SCALE[v] * block[u * BLOCK_SIZE + v] * _COS[x][u] * _COS[y][v]
                for u in range(BLOCK_SIZE)
                for v in range(BLOCK_SIZE)
            )
            result[y * BLOCK_SIZE + x] = _round_half_away(0.25 * total)
    return result


def reconstruct_image(
    y_blocks: Sequence[Sequence[int]],
    cb_blocks: Sequence[Sequence[int]],
    cr_blocks: Sequence[Sequence[int]],
    width: int,
    height: int,
) -> bytes:
    """Assemble interleaved RGB bytes from luma and subsampled chroma blocks."""
    pixels = bytearray(width * height * 3)
    block_index = 0
    for block_y in range(0, height, BLOCK_SIZE):
        for block_x in range(0, width, BLOCK_SIZE):
            chroma_index = block_index // 4
            if (
                block_index >= len(y_blocks)
                or chroma_index >= len(cb_blocks)
                or chroma_index >= len(cr_blocks)
            ):
                raise ValueError(
                    f"Block index out of bounds: {block_index} "
                    f"(yBlocks size: {len(y_blocks)}, cbBlocks size: {len(cb_blocks)}, "
                    f"crBlocks size: {len(cr_blocks)})"
                )
            y_data = y_blocks[block_index]
            cb_data = cb_blocks[chroma_index]
            cr_data = cr_blocks[chroma_index]

            for dy in range(BLOCK_SIZE):
                y = block_y + dy
                if y >= height:
                    continue
                for dx in range(BLOCK_SIZE):
                    x = block_x + dx
                    if x >= width:
                        continue
                    sub = (dy // 2) * 4 + dx // 2
                    if sub >= len(cb_data) or sub >= len(cr_data):
                        continue
                    luma = y_data[dy * BLOCK_SIZE + dx]
                    cb = cb_data[sub]
                    cr = cr_data[sub]
                    red = clamp(int(luma + 1.400 * (cr - 128)), 0, 255)
                    green = clamp(
                        int(luma - 0.343 * (cb - 128) - 0.711 * (cr - 128)), 0, 255
                    )
                    blue = clamp(int(luma + 1.765 * (cb - 128)), 0, 255)
                    offset = (y * width + x) * 3
                    pixels[offset:offset + 3] = bytes((red, green, blue))
            block_index += 1
    return bytes(pixels)


def save_image(output_path: PathLike, image_data: bytes, width: int, height: int) -> Path:
    """Write interleaved RGB bytes as a PNG file."""
    target = Path(output_path)
    try:
        Image.frombytes("RGB", (width, height), bytes(image_data)).save(target, format="PNG")
    except (OSError, ValueError) as exc:
        raise ValueError("Failed to save the image.") from exc
    return target


def decompress_image(
    input_file: PathLike,
    output_file: PathLike,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    expected_size: int = DEFAULT_EXPECTED_SIZE,
) -> Path:
    """Decode ``input_file`` into a PNG image of the given size."""
    with open(input_file, "rb") as stream:
        tree = load_huffman_tree(stream)
        if tree is None:
            raise ValueError("Failed to load Huffman tree.")
        coefficients = decode_huffman_data(stream, tree, expected_size)

    total_blocks = len(coefficients) // _BLOCK_AREA
    y_block_count = (width * height) // _BLOCK_AREA
    chroma_block_count = (total_blocks - y_block_count) // 2

    y_blocks: list[list[int]] = []
    cb_blocks: list[list[int]] = []
    cr_blocks: list[list[int]] = []
    for index in range(total_blocks):
        raw = coefficients[index * _BLOCK_AREA:(index + 1) * _BLOCK_AREA]
        block = apply_idct(dequantize(raw, QUANT_TABLE))
        if index < y_block_count:
            y_blocks.append(block)
        elif index < y_block_count + chroma_block_count:
            cb_blocks.append(block)
        else:
            cr_blocks.append(block)

    if (
        y_block_count <= 0
        or chroma_block_count <= 0
        or len(y_blocks) < y_block_count
        or len(cr_blocks) < chroma_block_count
    ):
        raise ValueError("not enough coefficient blocks for the image size")

    # Repeat the last block of each channel to cover the edge pixels.
    y_blocks.append(list(y_blocks[y_block_count - 1]))
    cb_blocks.append(list(cb_blocks[chroma_block_count - 1]))
    cr_blocks.append(list(cr_blocks[chroma_block_count - 1]))

    rgb = reconstruct_image(y_blocks, cb_blocks, cr_blocks, width, height)
    return save_image(output_file, rgb, width, height)