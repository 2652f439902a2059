"""File type validation, Huffman text compression, JPEG re-encoding and an experimental block image codec."""

__version__ = "0.1.0"
__all__ = ["__version__"]