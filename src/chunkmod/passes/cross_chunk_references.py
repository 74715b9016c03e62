"""
Cross-chunk reference classification.

Finds every reference to a global name declared in a different chunk and
records, per declaring chunk, the names it must export and, per
(referencing, declaring) chunk pair, the names the referencing chunk must
import. Both relations keep first-insertion order; that order becomes the
textual order of the generated specifiers.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Tuple

from ..analysis.chunk_graph import Chunk, CompilerInput
from ..analysis.module_paths import chunk_module_name
from ..shared.errors import DiagnosticType, check_state
from ..shared.nodes import NodeId, Token
from .base import CompilerContext

logger = logging.getLogger(__name__)


ASSIGNMENT_TO_IMPORT = DiagnosticType.error(
    "JSC_IMPORT_ASSIGN", 'Imported symbol "{0}" in chunk "{1}" cannot be assigned'
)


class OrderedNameSet:
    """Insertion-ordered set of names."""

    __slots__ = ('_names',)

    def __init__(self, names: Iterable[str] = ()):
        self._names: Dict[str, None] = dict.fromkeys(names)

    def add(self, name: str) -> bool:
        """Add name; True if it was not present."""
        if name in self._names:
            return False
        self._names[name] = None
        return True

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other):
        if isinstance(other, OrderedNameSet):
            return list(self._names) == list(other._names)
        return NotImplemented

    def __repr__(self) -> str:
        return f"OrderedNameSet({list(self._names)})"


class CrossChunkRelations:
    """
    The export relation (chunk -> names) and the import relation
    ((referencing chunk, declaring chunk) -> names).
    """

    def __init__(self) -> None:
        self.exports: Dict[Chunk, OrderedNameSet] = {}
        self.imports: Dict[Tuple[Chunk, Chunk], OrderedNameSet] = {}

    def record(self, referencing: Chunk, declaring: Chunk, name: str) -> None:
        check_state(referencing is not declaring, "same-chunk reference recorded as cross-chunk")
        self.exports.setdefault(declaring, OrderedNameSet()).add(name)
        self.imports.setdefault((referencing, declaring), OrderedNameSet()).add(name)

    def ensure_export_set(self, chunk: Chunk) -> OrderedNameSet:
        return self.exports.setdefault(chunk, OrderedNameSet())

    def has_exports(self, chunk: Chunk) -> bool:
        return chunk in self.exports

    def has_imports(self, chunk: Chunk) -> bool:
        return any(referencing is chunk for referencing, _ in self.imports)

    def importing_chunks(self) -> List[Chunk]:
        """Referencing chunks, in order of their first recorded import."""
        seen: Dict[Chunk, None] = {}
        for referencing, _ in self.imports:
            seen.setdefault(referencing, None)
        return list(seen)

    def imports_for(self, referencing: Chunk) -> List[Tuple[Chunk, OrderedNameSet]]:
        """(declaring chunk, names) pairs for one referencing chunk, in recorded order."""
        return [
            (declaring, names)
            for (ref, declaring), names in self.imports.items()
            if ref is referencing
        ]

    def exported_names(self, chunk: Chunk) -> List[str]:
        return list(self.exports.get(chunk, ()))

    def imported_names(self, referencing: Chunk, declaring: Chunk) -> List[str]:
        return list(self.imports.get((referencing, declaring), ()))


class FindCrossChunkReferences:
    """
    Post-order walk over every input, in chunk order.

    Each NAME is resolved through the context's BindingResolver; only global
    bindings declared in a different chunk are recorded.
    """

    def __init__(self, ctx: CompilerContext, relations: CrossChunkRelations):
        check_state(ctx.scope_index is not None, "scope index must be built before classification")
        self._ctx = ctx
        self._arena = ctx.arena
        self._resolver = ctx.scope_index
        self._relations = relations

    def traverse(self) -> CrossChunkRelations:
        for chunk in self._ctx.chunk_graph.get_all_chunks():
            for inp in chunk.inputs:
                self._traverse_input(inp)
        logger.debug(
            f"[CrossChunkReferences] {len(self._relations.exports)} exporting chunks, "
            f"{len(self._relations.imports)} import pairs"
        )
        return self._relations

    def _traverse_input(self, inp: CompilerInput) -> None:
        for nid in self._arena.walk_post_order(inp.root):
            self.visit(nid, inp.chunk)

    def visit(self, nid: NodeId, referencing_chunk: Chunk) -> None:
        arena = self._arena
        if arena.token(nid) is not Token.NAME:
            return
        name = arena.string(nid)
        if not name:
            return
        ref = self._resolver.resolve_global(nid)
        if ref is None:
            return

        # Compare the chunk where the variable is declared to the current chunk.
        defining_chunk = ref.chunk
        if defining_chunk is referencing_chunk:
            return

        if arena.is_lhs_of_assign(nid):
            self._ctx.reporter.report(
                ASSIGNMENT_TO_IMPORT,
                arena.location(nid),
                name,
                chunk_module_name(referencing_chunk),
            )
        if ref.is_declaration:
            logger.debug(
                f"[CrossChunkReferences] '{name}' redeclared in chunk '{referencing_chunk.name}', "
                f"first declared in '{defining_chunk.name}'"
            )

        self._relations.record(referencing_chunk, defining_chunk, name)
