"""
Language feature sets.

Each script records the language features it uses. The chunk conversion widens
the carrier script's set with MODULES and unions the sets of merged scripts.
"""

from enum import Enum
from typing import FrozenSet, Iterable, Iterator


class Feature(Enum):
    LET_DECLARATIONS = "let declaration"
    CONST_DECLARATIONS = "const declaration"
    EXPONENT_OPERATOR = "exponent operator (**)"
    MODULES = "modules"


class FeatureSet:
    """Immutable set of Features."""

    __slots__ = ('_features',)

    def __init__(self, features: Iterable[Feature] = ()):
        self._features: FrozenSet[Feature] = frozenset(features)

    def contains(self, feature: Feature) -> bool:
        return feature in self._features

    def union(self, other: "FeatureSet") -> "FeatureSet":
        return FeatureSet(self._features | other._features)

    def with_feature(self, feature: Feature) -> "FeatureSet":
        return FeatureSet(self._features | {feature})

    def __contains__(self, feature: Feature) -> bool:
        return feature in self._features

    def __iter__(self) -> Iterator[Feature]:
        return iter(sorted(self._features, key=lambda f: f.value))

    def __len__(self) -> int:
        return len(self._features)

    def __eq__(self, other):
        return isinstance(other, FeatureSet) and self._features == other._features

    def __hash__(self):
        return hash(self._features)

    def __repr__(self) -> str:
        return f"FeatureSet({[f.name for f in self]})"


EMPTY = FeatureSet()
