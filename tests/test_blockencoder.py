import struct

import pytest
from PIL import Image

from squeezer.blockencoder import (
    QUANT_TABLE,
    CoefficientNode,
    RasterImage,
    apply_dct,
    build_frequency_table,
    build_huffman_tree,
    compress_blocks,
    compress_image,
    encode_blocks,
    get_huffman_codes,
    load_image,
    pack_bits,
    quantize,
    rgb_to_ycbcr,
    save_encoded_data,
    serialize_huffman_tree,
    split_into_blocks,
    subsample_channel,
)


def _is_prefix_free(codes):
    values = list(codes.values())
    return not any(
        a != b and b.startswith(a) for a in values for b in values
    )


def test_load_image_round_trip(tmp_path):
    path = tmp_path / "img.png"
    img = Image.new("RGB", (3, 2))
    pixels = [(10, 20, 30), (40, 50, 60), (70, 80, 90),
              (1, 2, 3), (4, 5, 6), (7, 8, 9)]
    img.putdata(pixels)
    img.save(path)
    loaded = load_image(path)
    assert (loaded.width, loaded.height, loaded.channels) == (3, 2, 3)
    assert loaded.data == bytes(v for p in pixels for v in p)


def test_load_image_rejects_non_image(tmp_path):
    path = tmp_path / "bad.png"
    path.write_bytes(b"not an image")
    with pytest.raises(ValueError):
        load_image(path)


def test_rgb_to_ycbcr_black_and_gray():
    image = RasterImage(2, 1, 3, bytes([0, 0, 0, 100, 100, 100]))
    planes = rgb_to_ycbcr(image)
    assert planes.y[0] == 0
    assert planes.cb[0] == 128
    assert planes.cr[0] == 128
    assert len(planes.y) == len(planes.cb) == len(planes.cr) == 2
    assert abs(planes.y[1] - 100) <= 1


def test_subsample_channel_takes_even_positions():
    channel = list(range(16))
    result = subsample_channel(channel, 4, 4)
    assert result == [channel[0], channel[2], channel[8], channel[10]]


def test_split_into_blocks_layout():
    width, height = 16, 8
    channel = [i % 256 for i in range(width * height)]
    blocks = split_into_blocks(channel, width, height)
    assert len(blocks) == 2
    for y in range(8):
        for x in range(8):
            assert blocks[0][y * 8 + x] == channel[y * width + x]
            assert blocks[1][y * 8 + x] == channel[y * width + 8 + x]


def test_split_into_blocks_drops_partial_rows():
    blocks = split_into_blocks([0] * (8 * 12), 8, 12)
    assert len(blocks) == 1
    assert all(len(b) == 64 for b in blocks)


def test_apply_dct_constant_block_has_only_dc():
    result = apply_dct([128] * 64)
    assert result[0] == 1024
    assert all(c == 0 for c in result[1:])


def test_apply_dct_zero_block():
    assert apply_dct([0] * 64) == [0] * 64


def test_quantize_exact_multiples():
    block = [q * 3 for q in QUANT_TABLE]
    assert quantize(block, QUANT_TABLE) == [3] * 64


def test_quantize_rounds_halves_away_from_zero():
    assert quantize([8, -8], [16, 16]) == [1, -1]


def test_build_frequency_table_counts_and_order():
    table = build_frequency_table([[3, 1, 3], [-2, 3]])
    assert table == {-2: 1, 1: 1, 3: 3}
    assert list(table) == sorted(table)


def test_huffman_codes_are_prefix_free_and_cover_all():
    table = {0: 50, 1: 10, -1: 10, 2: 3, -5: 1}
    codes = get_huffman_codes(build_huffman_tree(table))
    assert set(codes) == set(table)
    assert _is_prefix_free(codes)
    assert len(codes[0]) <= min(len(c) for c in codes.values())


def test_huffman_single_symbol_has_empty_code():
    root = build_huffman_tree({7: 4})
    assert root.is_leaf()
    assert get_huffman_codes(root) == {7: ""}


def test_huffman_empty_table_raises():
    with pytest.raises(ValueError):
        build_huffman_tree({})


def test_encode_blocks_concatenates_codes():
    codes = {0: "0", 5: "10", -5: "11"}
    assert encode_blocks([[0, 5], [-5, 0]], codes) == "0" + "10" + "11" + "0"


def test_encode_blocks_missing_code_raises():
    with pytest.raises(ValueError, match="Missing Huffman code"):
        encode_blocks([[1, 2]], {1: "0"})


def test_serialize_single_leaf():
    assert serialize_huffman_tree(CoefficientNode(5)) == b"\x01" + struct.pack("<i", 5)


def test_serialize_two_leaves_preorder():
    root = CoefficientNode(None, 0, CoefficientNode(-3), CoefficientNode(9))
    assert serialize_huffman_tree(root) == (
        b"\x00" + b"\x01" + struct.pack("<i", -3) + b"\x01" + struct.pack("<i", 9)
    )


def test_pack_bits_single_bit_is_top_of_word():
    assert pack_bits("1") == struct.pack("<Q", 1 << 63)


def test_pack_bits_lengths():
    assert pack_bits("") == b""
    assert len(pack_bits("0" * 64)) == 8
    assert len(pack_bits("1" * 65)) == 16


def test_save_encoded_data_writes_tree_then_bits(tmp_path):
    root = CoefficientNode(None, 0, CoefficientNode(1), CoefficientNode(2))
    out = save_encoded_data("0110", root, tmp_path / "out.bin")
    assert out.read_bytes() == serialize_huffman_tree(root) + pack_bits("0110")


def test_compress_blocks_file_size_matches_stream(tmp_path):
    blocks = [[0] * 60 + [1, 2, 3, 4], [0] * 64]
    out = compress_blocks(blocks, tmp_path / "blocks.bin")
    tree = build_huffman_tree(build_frequency_table(blocks))
    bits = encode_blocks(blocks, get_huffman_codes(tree))
    data = out.read_bytes()
    prefix = serialize_huffman_tree(tree)
    assert data.startswith(prefix)
    assert len(data) == len(prefix) + 8 * -(-len(bits) // 64)


def test_compress_image_writes_tree_header(tmp_path):
    src = tmp_path / "in.png"
    img = Image.new("RGB", (16, 16))
    img.putdata([((x * 16) % 256, (y * 16) % 256, 128) for y in range(16) for x in range(16)])
    img.save(src)
    out = compress_image(src, tmp_path / "out.jc", 90)
    data = out.read_bytes()
    assert data[0] in (0, 1)
    assert len(data) > 5