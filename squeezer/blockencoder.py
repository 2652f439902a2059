"""Block-transform image encoder with a Huffman-coded coefficient stream.

The image is converted to YCbCr and the chroma channels are subsampled 4:2:0.
Each channel is cut into 8x8 blocks, which go through a DCT and are quantized.
The quantized coefficients of all Y, then Cb, then Cr blocks are Huffman coded.

Output layout: the Huffman tree in pre-order (a ``0`` byte for an internal
node, a ``1`` byte followed by the coefficient as a little-endian 32-bit
signed integer for a leaf). After it come the code bits, packed most
significant bit first into 64-bit words. Each word is stored little-endian,
and the last word is zero-padded.
"""

from __future__ import annotations

import heapq
import itertools
import math
import os
import struct
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence, Union

from PIL import Image

PathLike = Union[str, "os.PathLike[str]"]

BLOCK_SIZE = 8
WORD_BITS = 64
INTERNAL_TAG = 0
LEAF_TAG = 1
_COEFFICIENT = struct.Struct("<i")
_WORD = struct.Struct("<Q")

QUANT_TABLE: tuple[int, ...] = (
    16, 11, 12, 14, 12, 10, 16, 14,
    13, 14, 18, 17, 16, 19, 24, 40,
    26, 24, 22, 22, 24, 49, 35, 37,
    29, 40, 58, 51, 61, 60, 57, 51,
    56, 55, 64, 72, 92, 78, 64, 68,
    87, 69, 55, 56, 80, 109, 81, 87,
    95, 98, 103, 104, 103, 62, 77, 113,
    121, 112, 100, 120, 92, 101, 103, 99,
)

_COS = [
    [math.cos((2 * x + 1) * u * math.pi / 16.0) for u in range(BLOCK_SIZE)]
    for x in range(BLOCK_SIZE)
]
_SCALE = [1 / math.sqrt(2.0)] + [1.0] * (BLOCK_SIZE - 1)


def _round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value >= 0:
        return math.floor(value + 0.5)
    return -math.floor(-value + 0.5)


@dataclass
class RasterImage:
    """An interleaved 8-bit image."""

    width: int
    height: int
    channels: int
    data: bytes


@dataclass
class YCbCr:
    """Luma and chroma planes of an image, one byte per pixel each."""

    y: list[int]
    cb: list[int]
    cr: list[int]


@dataclass
class CoefficientNode:
    """A Huffman tree node; leaves carry a coefficient as ``value``."""

    value: Optional[int]
    frequency: int = 0
    left: Optional["CoefficientNode"] = None
    right: Optional["CoefficientNode"] = None

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def load_image(path: PathLike) -> RasterImage:
    """Load an image file as RGB.

    Raises ValueError if the file cannot be read as an image.
    """
    try:
        with Image.open(path) as img:
            rgb = img.convert("RGB")
            width, height = rgb.size
            data = rgb.tobytes()
    except OSError as exc:
        raise ValueError("Failed to load image") from exc
    return RasterImage(width, height, 3, data)


def _to_byte(value: float) -> int:
    return min(255, max(0, int(value)))


def rgb_to_ycbcr(image: RasterImage) -> YCbCr:
    """Convert an RGB image to YCbCr planes, truncating to integers."""
    planes = YCbCr([], [], [])
    data = image.data
    for offset in range(0, len(data) - 2, 3):
        r, g, b = data[offset], data[offset + 1], data[offset + 2]
        planes.y.append(_to_byte(0.299 * r + 0.587 * g + 0.114 * b))
        planes.cb.append(_to_byte(128 - 0.168736 * r - 0.331264 * g + 0.5 * b))
        planes.cr.append(_to_byte(128 + 0.5 * r - 0.418688 * g - 0.081312 * b))
    return planes


def subsample_channel(channel: Sequence[int], width: int, height: int) -> list[int]:
    """Keep every second pixel of every second row (4:2:0)."""
    half_w, half_h = width // 2, height // 2
    return [
        channel[(2 * row) * width + 2 * col]
        for row in range(half_h)
        for col in range(half_w)
    ]


def split_into_blocks(
    channel: Sequence[int], width: int, height: int
) -> list[list[int]]:
    """Cut a plane into 8x8 blocks, row by row.

    Partial blocks on the right edge are kept and read on into the following
    row; only whole block rows are used. Positions past the end read as 0.
    """
    blocks_x = (width + BLOCK_SIZE - 1) // BLOCK_SIZE
    blocks_y = height // BLOCK_SIZE
    size = len(channel)
    blocks = []
    for by in range(blocks_y):
        for bx in range(blocks_x):
            block = []
            for y in range(BLOCK_SIZE):
                start = (by * BLOCK_SIZE + y) * width + bx * BLOCK_SIZE
                block.extend(
                    channel[i] if i < size else 0
                    for i in range(start, start + BLOCK_SIZE)
                )
            blocks.append(block)
    return blocks


def apply_dct(block: Sequence[int]) -> list[int]:
    """Return the rounded 2-D DCT of a 64-value block."""
    result = []
    for u in range(BLOCK_SIZE):
        for v in range(BLOCK_SIZE):
            total = sum(
                block[y * BLOCK_SIZE + x] * _COS[x][u] * _COS[y][v]
                for x in range(BLOCK_SIZE)
                for y in range(BLOCK_SIZE)
            )
            result.append(_round_half_away(0.25 * _SCALE[u] * _SCALE[v] * total))
    return result


def quantize(block: Sequence[int], quant_table: Sequence[int]) -> list[int]:
    """Divide each coefficient by its table entry and round."""
    return [_round_half_away(c / q) for c, q in zip(block, quant_table)]


def build_frequency_table(blocks: Iterable[Sequence[int]]) -> dict[int, int]:
    """Count each coefficient across all blocks, ordered by coefficient."""
    counts = Counter(coeff for block in blocks for coeff in block)
    return dict(sorted(counts.items()))


def build_huffman_tree(frequency_table: Mapping[int, int]) -> CoefficientNode:
    """Build a Huffman tree from a coefficient-to-count mapping."""
    if not frequency_table:
        raise ValueError("cannot build a Huffman tree without coefficients")
    order = itertools.count()
    heap = [
        (freq, next(order), CoefficientNode(value, freq))
        for value, freq in sorted(frequency_table.items())
    ]
    heapq.heapify(heap)
    while len(heap) > 1:
        left_freq, _, left = heapq.heappop(heap)
        right_freq, _, right = heapq.heappop(heap)
        total = left_freq + right_freq
        heapq.heappush(heap, (total, next(order), CoefficientNode(None, total, left, right)))
    return heap[0][2]


def get_huffman_codes(root: CoefficientNode) -> dict[int, str]:
    """Map each leaf coefficient to its code of '0' and '1' characters."""
    codes: dict[int, str] = {}
    stack: list[tuple[CoefficientNode, str]] = [(root, "")]
    while stack:
        node, prefix = stack.pop()
        if node.is_leaf():
            codes[node.value] = prefix
            continue
        if node.right is not None:
            stack.append((node.right, prefix + "1"))
        if node.left is not None:
            stack.append((node.left, prefix + "0"))
    return codes


def encode_blocks(
    blocks: Iterable[Sequence[int]], huffman_codes: Mapping[int, str]
) -> str:
    """Concatenate the codes of every coefficient of every block."""
    parts = []
    for block in blocks:
        for coeff in block:
            try:
                parts.append(huffman_codes[coeff])
            except KeyError:
                raise ValueError(
                    f"Missing Huffman code for coefficient: {coeff}"
                ) from None
    return "".join(parts)


def serialize_huffman_tree(root: CoefficientNode) -> bytes:
    """Write the tree in pre-order."""
    out = bytearray()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf():
            out.append(LEAF_TAG)
            out += _COEFFICIENT.pack(node.value)
        else:
            out.append(INTERNAL_TAG)
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)
    return bytes(out)


def pack_bits(encoded_data: str) -> bytes:
    """Pack a bit string into little-endian 64-bit words, MSB first, zero-padded."""
    out = bytearray()
    for start in range(0, len(encoded_data), WORD_BITS):
        chunk = encoded_data[start:start + WORD_BITS].ljust(WORD_BITS, "0")
        out += _WORD.pack(int(chunk, 2))
    return bytes(out)


def save_encoded_data(
    encoded_data: str, huffman_tree: CoefficientNode, output_file: PathLike
) -> Path:
    """Write the tree and the packed bits to ``output_file``."""
    target = Path(output_file)
    target.write_bytes(serialize_huffman_tree(huffman_tree) + pack_bits(encoded_data))
    return target


def compress_blocks(
    quantized_blocks: Sequence[Sequence[int]], output_file: PathLike
) -> Path:
    """Huffman-code the blocks and write them to ``output_file``."""
    tree = build_huffman_tree(build_frequency_table(quantized_blocks))
    codes = get_huffman_codes(tree)
    encoded = encode_blocks(quantized_blocks, codes)
    return save_encoded_data(encoded, tree, output_file)


def compress_image(input_path: PathLike, output_path: PathLike, quality: int = 75) -> Path:
    """Encode the image at ``input_path`` into ``output_path``.

    ``quality`` is accepted for interface compatibility; the standard
    quantization table is always used.
    """
    image = load_image(input_path)
    planes = rgb_to_ycbcr(image)
    width, height = image.width, image.height

    sub_cb = subsample_channel(planes.cb, width, height)
    sub_cr = subsample_channel(planes.cr, width, height)

    y_blocks = split_into_blocks(planes.y, width, height)
    cb_blocks = split_into_blocks(sub_cb, width // 2, height // 2)
    cr_blocks = split_into_blocks(sub_cr, width // 2, height // 2)

    all_blocks = [
        quantize(apply_dct(block), QUANT_TABLE)
        for block in itertools.chain(y_blocks, cb_blocks, cr_blocks)
    ]
    return compress_blocks(all_blocks, output_path)