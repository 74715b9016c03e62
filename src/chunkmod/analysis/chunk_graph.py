"""
Chunk Graph

Output chunks, the inputs (scripts) they own, and the ordered dependency graph
between them. The graph is built by the caller; this module only stores it and
checks that it is ordered: every dependency is a known chunk listed before its
dependent.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set

from ..shared.errors import ChunkGraphError
from ..shared.features import EMPTY, FeatureSet
from ..shared.nodes import NodeArena, NodeId, Prop

logger = logging.getLogger(__name__)


class CompilerInput:
    """One parsed script owned by exactly one chunk."""

    def __init__(self, name: str, root: NodeId, source_code: Optional[str] = None):
        self.name = name
        self.root = root
        self.source_code = source_code
        self.chunk: Optional["Chunk"] = None
        # Set when this input's statements were moved into another input's module body
        self.merged_into: Optional["CompilerInput"] = None

    def feature_set(self, arena: NodeArena) -> FeatureSet:
        return arena.get_prop(self.root, Prop.FEATURE_SET, EMPTY)

    def __repr__(self) -> str:
        owner = self.chunk.name if self.chunk is not None else None
        return f"CompilerInput({self.name!r}, chunk={owner!r})"


class Chunk:
    """An output chunk: ordered inputs sharing one global scope."""

    def __init__(self, name: str, dependencies: Iterable["Chunk"] = ()):
        self.name = name
        self.dependencies: List[Chunk] = list(dependencies)
        self._inputs: List[CompilerInput] = []

    @property
    def inputs(self) -> List[CompilerInput]:
        return list(self._inputs)

    def get_input(self, index: int) -> CompilerInput:
        return self._inputs[index]

    def add(self, compiler_input: CompilerInput) -> CompilerInput:
        if compiler_input.chunk is not None:
            raise ChunkGraphError(
                f"input '{compiler_input.name}' already belongs to chunk '{compiler_input.chunk.name}'"
            )
        compiler_input.chunk = self
        self._inputs.append(compiler_input)
        return compiler_input

    def add_dependency(self, dependency: "Chunk") -> None:
        if dependency not in self.dependencies:
            self.dependencies.append(dependency)

    def is_empty(self) -> bool:
        return not self._inputs

    def __repr__(self) -> str:
        return f"Chunk({self.name!r}, inputs={[i.name for i in self._inputs]})"


class ChunkGraph:
    """Ordered, acyclic chunk graph."""

    def __init__(self, chunks: Iterable[Chunk]):
        self._chunks: List[Chunk] = list(chunks)
        self._by_name: Dict[str, Chunk] = {}
        self._validate()

    def _validate(self) -> None:
        seen: Set[int] = set()
        for chunk in self._chunks:
            if chunk.name in self._by_name:
                raise ChunkGraphError(f"duplicate chunk name '{chunk.name}'")
            for dep in chunk.dependencies:
                if id(dep) not in seen:
                    raise ChunkGraphError(
                        f"chunk '{chunk.name}' depends on '{dep.name}', "
                        f"which is unknown or does not precede it"
                    )
            self._by_name[chunk.name] = chunk
            seen.add(id(chunk))
        logger.debug(f"[ChunkGraph] {len(self._chunks)} chunks validated")

    def get_all_chunks(self) -> List[Chunk]:
        return list(self._chunks)

    def get_chunk(self, name: str) -> Chunk:
        try:
            return self._by_name[name]
        except KeyError:
            raise ChunkGraphError(f"unknown chunk '{name}'") from None

    def get_all_inputs(self) -> Iterator[CompilerInput]:
        for chunk in self._chunks:
            yield from chunk.inputs

    def depends_on(self, chunk: Chunk, other: Chunk) -> bool:
        """True if chunk depends on other, directly or transitively."""
        stack = list(chunk.dependencies)
        visited: Set[int] = set()
        while stack:
            dep = stack.pop()
            if dep is other:
                return True
            if id(dep) in visited:
                continue
            visited.add(id(dep))
            stack.extend(dep.dependencies)
        return False

    def __len__(self) -> int:
        return len(self._chunks)
