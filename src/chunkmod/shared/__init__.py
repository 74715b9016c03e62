"""
Shared components: AST arena, scopes, feature sets, diagnostics.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, DiagnosticType,
    ChunkModError, ChunkModSourceError, ChunkModImplementationError,
    ModuleSyntaxError, ParseError, ChunkGraphError, check_state,
)
from .features import Feature, FeatureSet
from .nodes import NodeArena, NodeId, Node, Token, Prop
from .scope import (
    Scope, ScopeKind, Binding, BindingType, GlobalReference, BindingResolver,
)
