"""
Centralized file I/O utilities.

- Single place for encoding
- Use Path.read_text()/write_text() consistently (no raw open/read)
"""

from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    return Path(path).read_text(encoding=DEFAULT_FILE_ENCODING)


def write_output_file(path: Union[Path, str], code: str) -> Path:
    """Write an emitted module, creating parent directories."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(code, encoding=DEFAULT_FILE_ENCODING)
    return p
