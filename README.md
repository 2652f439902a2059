# squeezer

A small command-line tool and library that checks a file's type and then
compresses it.

- **Text files** are compressed with Huffman coding into a compact binary file
  and can be decompressed back to the original bytes.
- **JPEG images** are decoded and written again at a chosen quality.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
squeezer <file_path> <file_type> [quality | --decompress]
```

The file types are `jpeg` and `txt`. The type name is not case sensitive. Any
other type name prints `Unsupported file type: ...` and exits with status 1.

The file is checked before anything else is done:

- A missing file prints an error and exits with status 1.
- A `jpeg` file must start with the bytes `FF D8 FF`.
- A `txt` file must have only printable ASCII or whitespace bytes in its first
  512 bytes.

The result of the check is printed: `The file is a valid ...` or
`The file is NOT a valid ...`. With `--decompress` the file is always reported
as valid. Work goes on either way.

Output files get fixed names in the current directory.

Compress a text file into `compressed.bin`:

```
squeezer notes.txt txt
```

Decompress it again into `output.txt`:

```
squeezer compressed.bin txt --decompress
```

Re-encode a JPEG at quality 90 into `compressed.jpeg`:

```
squeezer photo.jpeg jpeg 90
```

The default quality is 75. The quality argument is read like C's `atoi`: a
leading integer, or 0 if there is none. It is then clamped to 1..100.

Exit status is 0 on success and 1 on any error.

## Library

```python
from squeezer.textcodec import encode, decode
from squeezer.validator import FileType, validate_file_type

blob = encode(b"abracadabra")
assert decode(blob) == b"abracadabra"

validate_file_type("photo.jpeg", FileType.JPEG)
```

### `squeezer.validator`

- `FileType` has the members `JPEG` and `TXT`.
- `file_exists(path)` tells whether the file can be opened.
- `read_header_bytes(path, num_bytes)` returns the first bytes of a file. It
  raises `ValueError` if the file is shorter.
- `validate_file_type(path, expected_type)` returns `True` or `False`. It
  raises `FileNotFoundError` for a missing file.

### `squeezer.textcodec`

Huffman coding of bytes.

- `encode(data)` and `decode(blob)` work on bytes. `encode` raises
  `ValueError` on empty input.
- `compress_txt_file(input_file, output_file)` and
  `decompress_txt_file(compressed_file, output_file)` work on files.
- `count_frequencies`, `build_huffman_tree`, `generate_codes`,
  `serialize_tree`, `parse_tree` and the `HuffmanNode` class are available for
  lower-level use.

The compressed layout is as follows:

1. The tree in pre-order: `0` for an internal node, `1` plus the byte for a
   leaf.
2. A `#` marker.
3. The bit count as a little-endian 32-bit integer.
4. The bits, packed most significant bit first.

### `squeezer.lossy`

- `compress_jpeg(input_filename, output_filename, quality=75)` re-encodes a
  JPEG with Pillow. Grayscale images stay grayscale. Quality is clamped to
  1..100.
- It raises `ValueError` if the input is not a JPEG.

### `squeezer.blockencoder` and `squeezer.blockdecoder`

An experimental block-transform image codec.

Encoding with `compress_image(input_path, output_path, quality=75)` takes
these steps:

1. Convert to YCbCr.
2. Subsample the chroma 4:2:0 by taking every second pixel.
3. Cut each channel into 8×8 blocks.
4. Apply a DCT to each block.
5. Quantize with a fixed table.
6. Huffman-code the coefficients.

Decoding with `decompress_image(input_file, output_file, width=200,
height=200, expected_size=59968)` reverses these steps and writes a PNG.

The individual steps are exposed as functions, for example `rgb_to_ycbcr`,
`split_into_blocks`, `apply_dct`, `quantize`, `dequantize`, `apply_idct` and
`reconstruct_image`.

## Limitations

- The block codec has no command. It is reachable only from Python.
- The `quality` argument of `compress_image` is ignored. The same
  quantization table is always used.
- The encoded block format stores neither the image size nor the number of
  coefficients. `decompress_image` must be told the width, height and
  coefficient count, and otherwise assumes a 200×200 image and 59968
  coefficients. The decoder is not a general inverse of the encoder for
  arbitrary image sizes.
- The command line cannot choose output file names. Existing `compressed.bin`,
  `output.txt` or `compressed.jpeg` files in the current directory are
  overwritten.