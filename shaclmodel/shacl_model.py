"""ShaclModel — a Model specialised for SHACL shape graphs.

Adds shape lookup and the one graph-mutating operation of the library:
inverse property shape synthesis. Synthesis is meant to run once, right
after the shape graph is loaded and before any reader walks the shapes.
"""

from __future__ import annotations

from rdflib import BNode, Graph, URIRef
from rdflib.term import Node
from loguru import logger

from .config import DEFAULT_SETTINGS, Settings
from .model import Model
from .shapes import NodeShape, PropertyShape, Shape, build_shape
from .vocab import RDF, SH


class ShaclModel(Model):
    """A shape graph, with shape lookup helpers."""

    def __init__(self, graph: Graph | None = None, settings: Settings = DEFAULT_SETTINGS):
        super().__init__(graph)
        self.settings = settings

    # -----------------------------------------------------------------------
    # Shape lookup
    # -----------------------------------------------------------------------

    def get_shape(self, resource: Node) -> Shape:
        return build_shape(resource, self)

    def get_node_shapes(self) -> list[NodeShape]:
        """Every resource typed sh:NodeShape or carrying a target declaration."""
        found: dict[Node, None] = {}
        for subject in self.graph.subjects(RDF.type, SH.NodeShape):
            found[subject] = None
        for predicate in (SH.targetClass, SH.target):
            for subject in self.graph.subjects(predicate, None):
                found[subject] = None
        return [NodeShape(s, self) for s in found if not self.has_property(s, SH.path)]

    def get_property_shapes(self) -> list[PropertyShape]:
        """Every resource carrying a sh:path."""
        subjects = dict.fromkeys(self.graph.subjects(SH.path, None))
        return [PropertyShape(s, self) for s in subjects]

    def find_shapes_targeting(self, cls: Node) -> list[NodeShape]:
        return [NodeShape(s, self) for s in self.find_subjects_of(SH.targetClass, cls)]

    # -----------------------------------------------------------------------
    # Inverse property shape synthesis
    # -----------------------------------------------------------------------

    def has_inverse_property_shape(self, shape: Node, path: URIRef) -> bool:
        """True if ``shape`` already has a property shape with path [ sh:inversePath path ]."""
        for prop in self.read_property(shape, SH.property):
            existing = self.read_single_property(prop, SH.path)
            if isinstance(existing, BNode) and self.has_triple(existing, SH.inversePath, path):
                return True
        return False

    def _inverse_targets(self, prop: PropertyShape) -> list[Node]:
        # Range of the forward property: its own sh:node/sh:class, or the
        # sh:node/sh:class of each sh:or member (one level, no nesting).
        members = prop.get_sh_or()
        candidates = [build_shape(m, self) for m in members] if members else [prop]
        targets: dict[Node, None] = {}
        for candidate in candidates:
            for term in candidate.resolve_sh_node_or_sh_class():
                if isinstance(term, (URIRef, BNode)):
                    targets[term] = None
        return list(targets)

    def add_inverse_property_shapes(self) -> int:
        """Make forward-only properties navigable from their range side.

        For each property shape with an IRI path p, a range shape C and an
        owl:inverseOf declared for p, add to C:

            C sh:property [ sh:path [ sh:inversePath p ] ; sh:node <owner> ] .

        sh:node is only added when the forward property shape has exactly one
        owning node shape. Nothing is added when C already has a property shape
        with that inverse path, so running the pass again changes nothing.
        Properties with compound paths or without owl:inverseOf are skipped.

        Returns the number of property shapes created.
        """
        created = 0
        for prop in self.get_property_shapes():
            path = prop.get_sh_path()
            if not isinstance(path, URIRef):
                continue
            if prop.get_inverse_of(path) is None:
                logger.debug(f"No owl:inverseOf for {path.n3()}, skipping {prop!r}")
                continue

            owners = prop.get_inverse_sh_property()
            for target in self._inverse_targets(prop):
                if self.has_inverse_property_shape(target, path):
                    continue

                inverse_shape = BNode()
                inverse_path = BNode()
                self.add_quads([
                    (target, SH.property, inverse_shape),
                    (inverse_shape, SH.path, inverse_path),
                    (inverse_path, SH.inversePath, path),
                ])
                if len(owners) == 1:
                    self.add_quad((inverse_shape, SH.node, owners[0].resource))
                created += 1
                logger.debug(f"Added inverse property shape ^{path.n3()} on {target.n3()}")

        if created:
            logger.info(f"Synthesized {created} inverse property shape(s)")
        return created

    @staticmethod
    def compile(graph: Graph, settings: Settings = DEFAULT_SETTINGS) -> ShaclModel:
        """Prepare a shape graph for reading: wrap it and run inverse synthesis."""
        model = ShaclModel(graph, settings=settings)
        model.add_inverse_property_shapes()
        return model
