"""
Compiler Driver

Parses every chunk's input files into one arena, builds the chunk graph, runs
the passes and prints one ES module per non-empty chunk.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..analysis.chunk_graph import Chunk, ChunkGraph
from ..analysis.module_paths import chunk_module_name
from ..backends.printer import print_tree
from ..frontend.parser import Parser
from ..passes.base import CompilerContext, PassManager
from ..passes.convert_chunks_to_es_modules import ConvertChunksToESModulesPass
from ..passes.scope_resolution import ScopeResolutionPass
from ..shared.errors import ChunkGraphError, ErrorReporter, ModuleSyntaxError, ParseError
from ..shared.nodes import NodeArena
from ..shared.source_location import SourceLocation

logger = logging.getLogger(__name__)


@dataclass
class ChunkSource:
    """A chunk as handed to the driver: its name, input files and dependencies."""
    name: str
    files: List[Tuple[str, str]] = field(default_factory=list)  # (file name, source)
    dependencies: List[str] = field(default_factory=list)


class CompilationResult:
    """Compilation result"""
    def __init__(
        self,
        ctx: Optional[CompilerContext] = None,
        reporter: Optional[ErrorReporter] = None,
        outputs: Optional[Dict[str, str]] = None,
        success: bool = False,
    ):
        self.ctx = ctx
        self.reporter = reporter
        self.outputs: Dict[str, str] = outputs if outputs is not None else {}
        self.success = success

    def has_errors(self) -> bool:
        if self.reporter is not None:
            return self.reporter.has_errors()
        return not self.success

    def get_errors(self) -> list:
        if self.reporter is not None and self.reporter.has_errors():
            return [self.reporter.format_all_errors(color=False)]
        return []


class ChunkCompiler:
    """
    Orchestrates one compilation.

    Diagnostics reported by passes do not stop code generation: the modules
    are still printed, but the result is marked unsuccessful.
    """

    def __init__(self, parser: Optional[Parser] = None):
        self.parser = parser if parser is not None else Parser()
        self.pass_manager = PassManager()
        self._register_passes()

    def _register_passes(self) -> None:
        self.pass_manager.register_pass(ScopeResolutionPass)
        self.pass_manager.register_pass(ConvertChunksToESModulesPass)

    def compile(self, chunks: Sequence[ChunkSource]) -> CompilationResult:
        reporter = ErrorReporter()
        arena = NodeArena()
        for chunk_source in chunks:
            for file_name, source in chunk_source.files:
                reporter.source_files[file_name] = source

        try:
            graph = self._build_graph(chunks, arena)
        except ParseError as e:
            reporter.errors.append(e.to_error())
            return CompilationResult(reporter=reporter, success=False)
        except ChunkGraphError as e:
            reporter.report_error(e.message, e.location, code="JSC_CHUNK_GRAPH")
            return CompilationResult(reporter=reporter, success=False)

        ctx = CompilerContext(arena, graph, reporter)
        try:
            self.pass_manager.run_all(ctx)
        except ModuleSyntaxError as e:
            reporter.report_error(
                e.message,
                SourceLocation(file=e.input_name, line=0, column=0),
                code=e.error_code,
            )
            return CompilationResult(ctx=ctx, reporter=reporter, success=False)

        outputs = self.emit(ctx)
        return CompilationResult(
            ctx=ctx,
            reporter=reporter,
            outputs=outputs,
            success=not reporter.has_errors(),
        )

    def _build_graph(self, chunks: Sequence[ChunkSource], arena: NodeArena) -> ChunkGraph:
        by_name: Dict[str, Chunk] = {}
        ordered: List[Chunk] = []
        for chunk_source in chunks:
            chunk = Chunk(chunk_source.name)
            ordered.append(chunk)
            by_name.setdefault(chunk_source.name, chunk)
            for file_name, source in chunk_source.files:
                chunk.add(self.parser.parse(source, file_name, arena))

        for chunk_source, chunk in zip(chunks, ordered):
            for dep_name in chunk_source.dependencies:
                if dep_name not in by_name:
                    raise ChunkGraphError(f"chunk '{chunk.name}' depends on unknown chunk '{dep_name}'")
                chunk.add_dependency(by_name[dep_name])
        return ChunkGraph(ordered)

    def emit(self, ctx: CompilerContext) -> Dict[str, str]:
        """Print each converted chunk, keyed by its module file name."""
        outputs: Dict[str, str] = {}
        for chunk in ctx.chunk_graph.get_all_chunks():
            if chunk.is_empty():
                continue
            outputs[chunk_module_name(chunk)] = print_tree(ctx.arena, chunk.get_input(0).root)
        logger.debug(f"[Driver] emitted {len(outputs)} modules")
        return outputs
