"""Model: a thin read/write façade over an rdflib Graph.

Every other module reads the shape graph through this class. Lookups accept
rdflib terms or None (wildcard) in each position, mirroring rdflib's own
triple-pattern API.
"""

from __future__ import annotations

from typing import Iterable

from rdflib import BNode, Graph, Literal
from rdflib.term import Node

from .types import MalformedListError, MultipleValuesError
from .vocab import RDF

Triple = tuple[Node, Node, Node]


class Model:
    """Read/write access to a triple graph.

    The graph is the single mutable store. Shapes and paths built on top of
    a Model are views: they keep a reference to the Model and a term, never
    a copy of triples.
    """

    def __init__(self, graph: Graph | None = None):
        self.graph = graph if graph is not None else Graph()

    @classmethod
    def from_turtle(cls, data: str, **kwargs) -> Model:
        """Build a model from Turtle text (parsing is delegated to rdflib)."""
        graph = Graph()
        graph.parse(data=data, format="turtle")
        return cls(graph, **kwargs)

    # -----------------------------------------------------------------------
    # Triple store primitives
    # -----------------------------------------------------------------------

    def get_quads(
        self,
        subject: Node | None = None,
        predicate: Node | None = None,
        obj: Node | None = None,
        graph: Node | None = None,
    ) -> list[Triple]:
        """Return the triples matching a pattern; None matches anything.

        Only the default graph is supported, so ``graph`` must be None.
        """
        if graph is not None:
            raise ValueError("Named graphs are not supported by this model")
        return list(self.graph.triples((subject, predicate, obj)))

    def add_quad(self, triple: Triple) -> None:
        self.graph.add(triple)

    def add_quads(self, triples: Iterable[Triple]) -> None:
        for triple in triples:
            self.graph.add(triple)

    def remove_quad(self, triple: Triple) -> None:
        self.graph.remove(triple)

    def size(self) -> int:
        return len(self.graph)

    def has_triple(self, subject: Node | None, predicate: Node | None, obj: Node | None) -> bool:
        return (subject, predicate, obj) in self.graph

    def has_property(self, subject: Node, predicate: Node) -> bool:
        return self.has_triple(subject, predicate, None)

    # -----------------------------------------------------------------------
    # Property reads
    # -----------------------------------------------------------------------

    def read_property(self, subject: Node, predicate: Node) -> list[Node]:
        return list(self.graph.objects(subject, predicate))

    def find_subjects_of(self, predicate: Node, obj: Node) -> list[Node]:
        return list(self.graph.subjects(predicate, obj))

    def read_single_property(self, subject: Node, predicate: Node) -> Node | None:
        """Return the only value of a property, or None when it is absent.

        Raises MultipleValuesError when the property has several values.
        """
        values = self.read_property(subject, predicate)
        if len(values) > 1:
            raise MultipleValuesError(
                f"{subject.n3()} has {len(values)} values for {predicate.n3()}, expected at most one"
            )
        return values[0] if values else None

    def read_single_property_in_lang(
        self,
        subject: Node,
        predicate: Node,
        lang: str | None,
    ) -> Literal | None:
        """Return the literal value of a property in a given language.

        A literal tagged with ``lang`` wins; otherwise an untagged literal is
        returned. Values in other languages are ignored.
        """
        untagged = None
        for value in self.graph.objects(subject, predicate):
            if not isinstance(value, Literal):
                continue
            if lang is not None and value.language is not None and value.language.lower() == lang.lower():
                return value
            if value.language is None and untagged is None:
                untagged = value
        return untagged

    def read_single_property_as_number(self, subject: Node, predicate: Node) -> int | float | None:
        value = self.read_single_property(subject, predicate)
        if value is None:
            return None
        if not isinstance(value, Literal):
            raise ValueError(f"{predicate.n3()} of {subject.n3()} is not a literal: {value.n3()}")
        number = value.toPython()
        if isinstance(number, bool) or not isinstance(number, (int, float)):
            try:
                number = int(str(value))
            except ValueError:
                number = float(str(value))
        return number

    # -----------------------------------------------------------------------
    # RDF lists
    # -----------------------------------------------------------------------

    def is_list_head(self, node: Node) -> bool:
        return isinstance(node, BNode) and self.has_property(node, RDF.first)

    def read_list_content(self, head: Node) -> list[Node]:
        """Materialize an RDF list (rdf:first / rdf:rest ... rdf:nil).

        Each list node must carry exactly one rdf:first and one rdf:rest;
        anything else raises MalformedListError.
        """
        items: list[Node] = []
        visited: set[Node] = set()
        node = head
        while node != RDF.nil:
            if node in visited:
                raise MalformedListError(f"RDF list starting at {head.n3()} is cyclic")
            visited.add(node)

            firsts = self.read_property(node, RDF.first)
            rests = self.read_property(node, RDF.rest)
            if len(firsts) != 1:
                raise MalformedListError(
                    f"RDF list node {node.n3()} has {len(firsts)} rdf:first values, expected 1"
                )
            if len(rests) != 1:
                raise MalformedListError(
                    f"RDF list node {node.n3()} has {len(rests)} rdf:rest values, expected 1"
                )
            items.append(firsts[0])
            node = rests[0]
        return items

    def read_as_list(self, subject: Node, predicate: Node) -> list[Node]:
        """Return the content of the list held by a single-valued property."""
        head = self.read_single_property(subject, predicate)
        if head is None:
            return []
        return self.read_list_content(head)

    # -----------------------------------------------------------------------
    # SPARQL execution adapter
    # -----------------------------------------------------------------------

    def query_select(self, sparql: str) -> list[dict[str, Node]]:
        """Run a SELECT query with rdflib's engine and return one dict per row.

        Unbound variables are left out of the row dicts.
        """
        result = self.graph.query(sparql)
        if result.type != "SELECT":
            raise ValueError(f"Expected a SELECT query, got {result.type}")
        rows = []
        for row in result:
            rows.append({
                str(var): row[var]
                for var in result.vars
                if row[var] is not None
            })
        return rows

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def get_local_name(iri: str) -> str:
        """Return the part of an IRI after its last '#' or '/'."""
        cut = max(iri.rfind("#"), iri.rfind("/"))
        return iri[cut + 1:]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.size()} triples)"
