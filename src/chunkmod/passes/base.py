"""
Base Pass System

Passes operate in place on the AST arena held by a CompilerContext. Analysis
results are stored on the context, not on pass instances.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set, Type

from ..analysis.chunk_graph import ChunkGraph
from ..shared.errors import ErrorReporter
from ..shared.nodes import NodeArena
from ..shared.scope import BindingResolver

logger = logging.getLogger(__name__)


class CompilerContext:
    """
    Single source of truth for one compilation.

    Holds the arena, the chunk graph, the scope query and the diagnostics sink.
    One context per compilation; passes never share contexts.
    """

    def __init__(self, arena: NodeArena, chunk_graph: ChunkGraph,
                 reporter: Optional[ErrorReporter] = None):
        self.arena = arena
        self.chunk_graph = chunk_graph
        self.reporter: ErrorReporter = reporter if reporter is not None else ErrorReporter()
        self.scope_index: Optional[BindingResolver] = None
        self._analysis_results: Dict[Type['BasePass'], Any] = {}

    @property
    def source_files(self) -> Dict[str, str]:
        return self.reporter.source_files

    def get_analysis(self, pass_class: Type['BasePass']) -> Any:
        """Get analysis results from a pass"""
        if pass_class not in self._analysis_results:
            raise RuntimeError(f"Analysis {pass_class.__name__} not available")
        return self._analysis_results[pass_class]

    def set_analysis(self, pass_class: Type['BasePass'], results: Any) -> None:
        self._analysis_results[pass_class] = results


class BasePass(ABC):
    """
    Base class for all passes.

    `requires` lists passes that must run first; the PassManager orders
    registered passes accordingly.
    """
    requires: List[Type['BasePass']] = []

    @abstractmethod
    def run(self, ctx: CompilerContext) -> None:
        raise NotImplementedError


class PassManager:
    """Runs registered passes in dependency order."""

    def __init__(self):
        self.passes: List[Type[BasePass]] = []
        self._dependency_graph: Dict[Type[BasePass], Set[Type[BasePass]]] = {}

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, ctx: CompilerContext) -> None:
        for pass_class in self._topological_sort():
            logger.debug(f"[PassManager] running {pass_class.__name__}")
            pass_class().run(ctx)

    def _topological_sort(self) -> List[Type[BasePass]]:
        """Topological sort of passes by dependencies; registration order breaks ties."""
        for pass_class, deps in self._dependency_graph.items():
            missing = [d.__name__ for d in deps if d not in self._dependency_graph]
            if missing:
                raise RuntimeError(f"{pass_class.__name__} requires unregistered passes: {missing}")

        in_degree = {p: len(self._dependency_graph[p]) for p in self.passes}
        queue = [p for p, degree in in_degree.items() if degree == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)
            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")
        return result
