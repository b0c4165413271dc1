"""Core types for the shape model: error hierarchy and property path trees.

SHACL property paths are stored in the graph as blank-node fragments. They are
read once into the frozen dataclasses below and rendered from there, so graph
reading and string rendering stay separate concerns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from rdflib import URIRef


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ShaclModelError(ValueError):
    """Base class for malformed shape-graph input."""


class UnsupportedPathError(ShaclModelError):
    """A path term matches none of the SHACL path constructors."""


class MissingPathError(ShaclModelError):
    """A property shape has no sh:path."""


class AmbiguousTargetError(ShaclModelError):
    """A sh:target/sh:select cannot be spliced unambiguously."""


class MalformedListError(ShaclModelError):
    """An RDF list has a missing, duplicated or cyclic link."""


class MultipleValuesError(ShaclModelError):
    """A single-valued property has more than one value."""


class SparqlExpansionError(ShaclModelError):
    """An expanded query no longer parses as SPARQL."""


# ---------------------------------------------------------------------------
# Property path tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PredicatePath:
    """An atomic path: a single property IRI."""
    iri: URIRef

    def __repr__(self) -> str:
        return f"Path({self.iri})"


@dataclass(frozen=True)
class SequencePath:
    members: tuple[PathNode, ...]

    def __repr__(self) -> str:
        return f"Seq({', '.join(repr(m) for m in self.members)})"


@dataclass(frozen=True)
class AlternativePath:
    members: tuple[PathNode, ...]

    def __repr__(self) -> str:
        return f"Alt({', '.join(repr(m) for m in self.members)})"


@dataclass(frozen=True)
class InversePath:
    path: PathNode

    def __repr__(self) -> str:
        return f"Inverse({self.path!r})"


@dataclass(frozen=True)
class OneOrMorePath:
    path: PathNode

    def __repr__(self) -> str:
        return f"OneOrMore({self.path!r})"


@dataclass(frozen=True)
class ZeroOrMorePath:
    path: PathNode

    def __repr__(self) -> str:
        return f"ZeroOrMore({self.path!r})"


@dataclass(frozen=True)
class ZeroOrOnePath:
    path: PathNode

    def __repr__(self) -> str:
        return f"ZeroOrOne({self.path!r})"


PathNode = Union[
    PredicatePath,
    SequencePath,
    AlternativePath,
    InversePath,
    OneOrMorePath,
    ZeroOrMorePath,
    ZeroOrOnePath,
]
