"""Huffman compression of text files.

Compressed layout: the Huffman tree in pre-order (``b"0"`` for an internal
node, ``b"1"`` followed by the symbol byte for a leaf), a ``b"#"`` marker,
the number of payload bits as a little-endian 32-bit signed integer, and the
payload bits packed most significant bit first, zero-padded to a byte.
"""

from __future__ import annotations

import heapq
import itertools
import os
import struct
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]

INTERNAL_TAG = ord("0")
LEAF_TAG = ord("1")
TREE_END = ord("#")
_BIT_COUNT = struct.Struct("<i")


@dataclass
class HuffmanNode:
    """A node of a Huffman tree; leaves carry a byte value as ``symbol``."""

    symbol: Optional[int]
    freq: int = 0
    left: Optional["HuffmanNode"] = None
    right: Optional["HuffmanNode"] = None

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def count_frequencies(data: bytes) -> Counter:
    """Count how often each byte value occurs."""
    return Counter(data)


def build_huffman_tree(frequencies: Mapping[int, int]) -> HuffmanNode:
    """Build a Huffman tree from a byte-to-count mapping."""
    if not frequencies:
        raise ValueError("cannot build a Huffman tree without symbols")
    order = itertools.count()
    heap = [
        (freq, next(order), HuffmanNode(symbol, freq))
        for symbol, freq in sorted(frequencies.items())
    ]
    heapq.heapify(heap)
    while len(heap) > 1:
        left_freq, _, left = heapq.heappop(heap)
        right_freq, _, right = heapq.heappop(heap)
        total = left_freq + right_freq
        parent = HuffmanNode(None, total, left, right)
        heapq.heappush(heap, (total, next(order), parent))
    return heap[0][2]


def generate_codes(root: HuffmanNode) -> dict[int, str]:
    """Map each leaf symbol to its code as a string of '0' and '1'.

    A tree with a single leaf gives that symbol the empty code.
    """
    codes: dict[int, str] = {}
    stack: list[tuple[HuffmanNode, str]] = [(root, "")]
    while stack:
        node, prefix = stack.pop()
        if node.is_leaf():
            codes[node.symbol] = prefix
            continue
        if node.right is not None:
            stack.append((node.right, prefix + "1"))
        if node.left is not None:
            stack.append((node.left, prefix + "0"))
    return codes


def serialize_tree(root: HuffmanNode) -> bytes:
    """Write the tree in pre-order."""
    out = bytearray()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf():
            out.append(LEAF_TAG)
            out.append(node.symbol)
        else:
            out.append(INTERNAL_TAG)
            stack.append(node.right)
            stack.append(node.left)
    return bytes(out)


def parse_tree(blob: bytes) -> tuple[HuffmanNode, int]:
    """Read a serialized tree from the start of ``blob``.

    Returns the tree and the offset just past it.
    """

    def parse(pos: int) -> tuple[HuffmanNode, int]:
        if pos >= len(blob):
            raise ValueError("truncated Huffman tree")
        tag = blob[pos]
        if tag == LEAF_TAG:
            if pos + 1 >= len(blob):
                raise ValueError("truncated Huffman tree")
            return HuffmanNode(blob[pos + 1]), pos + 2
        if tag == INTERNAL_TAG:
            left, pos = parse(pos + 1)
            right, pos = parse(pos)
            return HuffmanNode(None, 0, left, right), pos
        raise ValueError(f"unexpected byte {tag:#04x} in Huffman tree")

    return parse(0)


def _pack_bits(bits: str) -> bytes:
    if not bits:
        return b""
    padded = bits + "0" * (-len(bits) % 8)
    return int(padded, 2).to_bytes(len(padded) // 8, "big")


def encode(data: bytes) -> bytes:
    """Compress ``data``; raises ValueError if it is empty."""
    if not data:
        raise ValueError("Input file is empty or error reading!")
    root = build_huffman_tree(count_frequencies(data))
    codes = generate_codes(root)
    bits = "".join(codes[byte] for byte in data)
    return (
        serialize_tree(root)
        + bytes([TREE_END])
        + _BIT_COUNT.pack(len(bits))
        + _pack_bits(bits)
    )


def _iter_bits(payload: bytes) -> Iterator[int]:
    for byte in payload:
        for shift in range(7, -1, -1):
            yield (byte >> shift) & 1


def decode(blob: bytes) -> bytes:
    """Restore the data compressed by :func:`encode`."""
    root, pos = parse_tree(blob)
    if pos >= len(blob) or blob[pos] != TREE_END:
        raise ValueError("Tree marker not found, corrupted file!")
    pos += 1
    header = blob[pos:pos + _BIT_COUNT.size]
    total_bits = _BIT_COUNT.unpack(header)[0] if len(header) == _BIT_COUNT.size else 0
    payload = blob[pos + _BIT_COUNT.size:]

    out = bytearray()
    node = root
    for bit in itertools.islice(_iter_bits(payload), max(total_bits, 0)):
        node = node.right if bit else node.left
        if node is None:
            raise ValueError("bit stream does not match Huffman tree")
        if node.is_leaf():
            out.append(node.symbol)
            node = root
    return bytes(out)


def compress_txt_file(input_file: PathLike, output_file: PathLike) -> Path:
    """Compress ``input_file`` into ``output_file`` and return the output path."""
    data = Path(input_file).read_bytes()
    compressed = encode(data)
    target = Path(output_file)
    target.write_bytes(compressed)
    return target


def decompress_txt_file(compressed_file: PathLike, output_file: PathLike) -> Path:
    """Decompress ``compressed_file`` into ``output_file`` and return the output path."""
    restored = decode(Path(compressed_file).read_bytes())
    target = Path(output_file)
    target.write_bytes(restored)
    return target