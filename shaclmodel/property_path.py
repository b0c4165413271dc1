"""SHACL property paths rendered as SPARQL property path syntax.

A SHACL path is either a property IRI or a blank node encoding one of the
path constructors:

    ( p1 p2 ... )              sequence       p1/p2/...
    [ sh:alternativePath (..)] alternative    (p1|p2|...)
    [ sh:inversePath p ]       inverse        ^p   or ^(p) when p is compound
    [ sh:zeroOrMorePath p ]    zero-or-more   p*
    [ sh:oneOrMorePath p ]     one-or-more    p+
    [ sh:zeroOrOnePath p ]     zero-or-one    p?

parse_path() reads the graph fragment into a PathNode tree and render_path()
turns that tree into text. Rendering never touches the graph.
"""

from __future__ import annotations

from rdflib import BNode, URIRef
from rdflib.term import Node

from .model import Model
from .types import (
    AlternativePath,
    InversePath,
    OneOrMorePath,
    PathNode,
    PredicatePath,
    SequencePath,
    UnsupportedPathError,
    ZeroOrMorePath,
    ZeroOrOnePath,
)
from .vocab import SH


# Checked in this order once the term is known not to be a list head.
_UNARY_CONSTRUCTORS = (
    (SH.oneOrMorePath, OneOrMorePath),
    (SH.inversePath, InversePath),
    (SH.alternativePath, AlternativePath),
    (SH.zeroOrMorePath, ZeroOrMorePath),
    (SH.zeroOrOnePath, ZeroOrOnePath),
)

_SUFFIXES = {
    OneOrMorePath: "+",
    ZeroOrMorePath: "*",
    ZeroOrOnePath: "?",
}


# ---------------------------------------------------------------------------
# Graph → PathNode
# ---------------------------------------------------------------------------

def parse_path(term: Node, model: Model) -> PathNode:
    """Read the SHACL path rooted at ``term`` into a PathNode tree.

    Raises UnsupportedPathError for literals, for blank nodes carrying no
    path constructor and for paths that refer back to themselves.
    """
    return _parse(term, model, frozenset())


def _parse(term: Node, model: Model, ancestors: frozenset) -> PathNode:
    if isinstance(term, URIRef):
        return PredicatePath(term)
    if not isinstance(term, BNode):
        raise UnsupportedPathError(f"Unsupported SHACL property path: {term!r}")
    if term in ancestors:
        raise UnsupportedPathError(f"SHACL property path {term.n3()} is cyclic")
    ancestors = ancestors | {term}

    if model.is_list_head(term):
        members = model.read_list_content(term)
        return SequencePath(tuple(_parse(m, model, ancestors) for m in members))

    for predicate, constructor in _UNARY_CONSTRUCTORS:
        value = model.read_single_property(term, predicate)
        if value is None:
            continue
        if constructor is AlternativePath:
            members = model.read_list_content(value)
            return AlternativePath(tuple(_parse(m, model, ancestors) for m in members))
        return constructor(_parse(value, model, ancestors))

    raise UnsupportedPathError(f"Unsupported SHACL property path: {term.n3()}")


# ---------------------------------------------------------------------------
# PathNode → SPARQL
# ---------------------------------------------------------------------------

def render_path(path: PathNode, use_local_name: bool = False) -> str:
    """Render a PathNode tree in SPARQL property path syntax.

    With use_local_name, every IRI is shortened to its local name, which is
    meant for display and is not valid SPARQL.
    """
    if isinstance(path, PredicatePath):
        if use_local_name:
            return Model.get_local_name(str(path.iri))
        return f"<{path.iri}>"
    if isinstance(path, SequencePath):
        return "/".join(render_path(m, use_local_name) for m in path.members)
    if isinstance(path, AlternativePath):
        return "(" + "|".join(render_path(m, use_local_name) for m in path.members) + ")"
    if isinstance(path, InversePath):
        inner = render_path(path.path, use_local_name)
        if isinstance(path.path, PredicatePath):
            return "^" + inner
        return "^(" + inner + ")"
    suffix = _SUFFIXES.get(type(path))
    if suffix is None:
        raise UnsupportedPathError(f"Unsupported path node: {path!r}")
    return render_path(path.path, use_local_name) + suffix


# ---------------------------------------------------------------------------
# PropertyPath view
# ---------------------------------------------------------------------------

class PropertyPath:
    """A SHACL property path term, read through a Model."""

    def __init__(self, resource: Node, model: Model):
        self.resource = resource
        self.model = model

    def is_predicate_path(self) -> bool:
        return isinstance(self.resource, URIRef)

    def is_inverse_path(self) -> bool:
        return isinstance(self.resource, BNode) and self.model.has_property(self.resource, SH.inversePath)

    def get_inverse_path(self) -> Node | None:
        """Return the path wrapped by sh:inversePath, if this is an inverse path."""
        if self.is_inverse_path():
            return self.model.read_single_property(self.resource, SH.inversePath)
        return None

    def parse(self) -> PathNode:
        return parse_path(self.resource, self.model)

    def to_sparql(self, use_local_name: bool = False) -> str:
        """Render this path in SPARQL syntax, with full IRIs or local names."""
        return render_path(self.parse(), use_local_name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertyPath):
            return NotImplemented
        return self.resource == other.resource and self.model is other.model

    def __hash__(self) -> int:
        return hash(self.resource)

    def __repr__(self) -> str:
        return f"PropertyPath({self.resource.n3()})"
