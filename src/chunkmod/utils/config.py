"""
Configuration constants for chunkmod
"""

import os
import tempfile

# Module naming
MODULE_FILE_EXTENSION = ".js"
RELATIVE_PREFIX = "./"

# Parser configuration (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "chunkmod_parser.cache")

# Code printing
STRING_QUOTE_CHAR = "'"
INDENT = "  "

# File encoding
DEFAULT_FILE_ENCODING = "utf-8"

# CLI separators: --chunk NAME=FILE,FILE  --dep CHUNK:DEPENDENCY
CHUNK_SPEC_SEPARATOR = "="
CHUNK_FILE_SEPARATOR = ","
DEPENDENCY_SEPARATOR = ":"
