"""
Parser

Lark LALR parser for the JavaScript subset chunkmod understands. Produces one
SCRIPT tree in the shared arena per input file.
"""

import logging
from pathlib import Path

from lark import Lark
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedToken, ParseError as LarkParseError

from ..analysis.chunk_graph import CompilerInput
from ..shared.errors import ParseError
from ..shared.nodes import NodeArena
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_PARSER_CACHE_FILE
from .transformer import ChunkModTransformer

logger = logging.getLogger(__name__)


class Parser:
    """
    Source text -> CompilerInput.

    The grammar is compiled once per Parser and cached on disk by Lark.
    """

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "grammar.lark"
        self.parser = Lark.open(
            str(grammar_path),
            start='program',
            parser='lalr',              # Required for caching
            cache=cache_file,
            propagate_positions=True,
            maybe_placeholders=False,
        )
        self.transformer = ChunkModTransformer()

    def parse(self, source: str, source_file: str, arena: NodeArena) -> CompilerInput:
        """Parse one input file into arena. Raises ParseError on bad syntax."""
        self.transformer.reset(arena, source_file)
        try:
            tree = self.parser.parse(source)
        except (UnexpectedToken, UnexpectedCharacters, UnexpectedEOF) as e:
            location = SourceLocation(
                file=source_file,
                line=max(getattr(e, 'line', 0) or 0, 0),
                column=max(getattr(e, 'column', 0) or 0, 0),
            )
            raise ParseError(_describe(e), source_file, location, source) from e
        except LarkParseError as e:
            raise ParseError(f"Parse error: {e}", source_file, source_code=source) from e

        root = self.transformer.transform(tree)
        logger.debug(f"[Parser] {source_file}: {len(arena)} nodes in arena")
        return CompilerInput(source_file, root, source_code=source)


def _describe(e: Exception) -> str:
    if isinstance(e, UnexpectedToken):
        if e.token.type == '$END':
            return "Parse error: unexpected end of input"
        return f"Parse error: unexpected token '{e.token}'"
    if isinstance(e, UnexpectedCharacters):
        return f"Parse error: unexpected character '{e.char}'"
    return "Parse error: unexpected end of input"
