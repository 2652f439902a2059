[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "squeezer"
version = "0.1.0"
description = "Validate files, compress text with Huffman coding, and re-encode JPEG images at a chosen quality"
requires-python = ">=3.10"
keywords = ["compression", "huffman", "jpeg", "dct", "text", "validation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving :: Compression",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
squeezer = "squeezer.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["squeezer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
