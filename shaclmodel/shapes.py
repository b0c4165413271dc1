"""Shape views: NodeShape and PropertyShape over a ShaclModel.

A shape is any IRI or blank node of the shape graph. Whether it is a
PropertyShape or a NodeShape is decided by the presence of sh:path, so
build_shape() is the only place that picks the variant. Shapes are cheap,
stateless views: two views over the same term are equal, and rebuilding a
view is always safe.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rdflib import BNode, Literal, URIRef
from rdflib.term import Node

from .config import Settings
from .model import Model
from .property_path import PropertyPath
from .types import AmbiguousTargetError, MissingPathError
from .vocab import DASH, OWL, RDFS, SH, SH12, SKOS

if TYPE_CHECKING:
    from .shacl_model import ShaclModel


# Constraint components that restrict the values a property may take.
RANGE_PREDICATES = (
    SH["class"],
    SH.node,
    SH.datatype,
    SH.nodeKind,
    SH.hasValue,
    SH["in"],
)


def build_shape(resource: Node, model: ShaclModel) -> Shape:
    """Wrap a shape-graph node as a PropertyShape (has sh:path) or a NodeShape."""
    if not isinstance(resource, (URIRef, BNode)):
        raise ValueError(f"A shape must be an IRI or a blank node, got {resource!r}")
    if model.has_property(resource, SH.path):
        return PropertyShape(resource, model)
    return NodeShape(resource, model)


def _text(value: Literal | None) -> str | None:
    return str(value) if value is not None else None


# ---------------------------------------------------------------------------
# Shape: capabilities shared by both variants
# ---------------------------------------------------------------------------

class Shape:
    """Behavior common to node shapes and property shapes."""

    def __init__(self, resource: Node, model: ShaclModel):
        self.resource = resource
        self.model = model

    @property
    def settings(self) -> Settings:
        return self.model.settings

    def _lang(self, lang: str | None) -> str:
        return lang or self.settings.default_lang

    # -----------------------------------------------------------------------
    # Constraint reads
    # -----------------------------------------------------------------------

    def get_sh_or(self) -> list[Node]:
        """Members of the sh:or list, in list order."""
        return self.model.read_as_list(self.resource, SH["or"])

    def get_sh_class(self) -> list[Node]:
        return self.model.read_property(self.resource, SH["class"])

    def get_sh_node(self) -> list[Node]:
        return self.model.read_property(self.resource, SH.node)

    def get_sh_datatype(self) -> list[Node]:
        return self.model.read_property(self.resource, SH.datatype)

    def get_sh_node_kind(self) -> Node | None:
        return self.model.read_single_property(self.resource, SH.nodeKind)

    def get_sh_has_value(self) -> Node | None:
        return self.model.read_single_property(self.resource, SH.hasValue)

    def get_sh_in(self) -> list[Node] | None:
        """Values of sh:in, or None when the shape has no sh:in."""
        values = self.model.read_as_list(self.resource, SH["in"])
        return values or None

    def get_dash_search_widget(self) -> list[Node]:
        return self.model.read_property(self.resource, DASH.searchWidget)

    def has_range_constraint(self) -> bool:
        return any(self.model.has_property(self.resource, p) for p in RANGE_PREDICATES)

    def resolve_sh_node_or_sh_class(self) -> list[Node]:
        """Return the node shapes describing the values of this shape.

        sh:node values are returned as-is. Each sh:class C is resolved to the
        node shapes declaring sh:targetClass C, or to C itself when no shape
        targets it.
        """
        resolved = list(self.get_sh_node())
        for cls in self.get_sh_class():
            targeting = self.model.find_shapes_targeting(cls)
            if targeting:
                resolved.extend(s.resource for s in targeting)
            else:
                resolved.append(cls)
        return list(dict.fromkeys(resolved))

    def get_local_name(self) -> str:
        if isinstance(self.resource, URIRef):
            return Model.get_local_name(str(self.resource))
        return str(self.resource)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Shape):
            return NotImplemented
        return self.resource == other.resource and self.model is other.model

    def __hash__(self) -> int:
        return hash(self.resource)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.resource.n3()})"


# ---------------------------------------------------------------------------
# NodeShape
# ---------------------------------------------------------------------------

class NodeShape(Shape):
    """A shape without sh:path: targets, attached properties, disjunctions."""

    def get_properties(self) -> list[PropertyShape]:
        """Property shapes attached with sh:property, sorted by sh:order."""
        shapes = [
            PropertyShape(p, self.model)
            for p in self.model.read_property(self.resource, SH.property)
            if self.model.has_property(p, SH.path)
        ]

        def order_key(shape: PropertyShape):
            order = self.model.read_single_property_as_number(shape.resource, SH.order)
            return (order is None, order if order is not None else 0, str(shape.resource))

        return sorted(shapes, key=order_key)

    def get_target_class(self) -> list[Node]:
        return self.model.read_property(self.resource, SH.targetClass)

    def get_targets(self) -> list[Node]:
        return self.model.read_property(self.resource, SH.target)

    def get_target_select(self) -> str | None:
        """Return the sh:select query of this shape's sh:target, if any.

        Raises AmbiguousTargetError when several targets carry a sh:select.
        """
        selects = []
        for target in self.get_targets():
            select = self.model.read_single_property(target, SH.select)
            if select is not None:
                selects.append(str(select))
        if len(selects) > 1:
            raise AmbiguousTargetError(
                f"{self.resource.n3()} has {len(selects)} sh:target/sh:select queries, expected at most one"
            )
        return selects[0] if selects else None

    def get_label(self, lang: str | None = None) -> str:
        lang = self._lang(lang)
        label = _text(self.model.read_single_property_in_lang(self.resource, RDFS.label, lang))
        if not label:
            label = _text(self.model.read_single_property_in_lang(self.resource, SH.name, lang))
        if not label:
            for cls in self.get_target_class():
                label = _text(self.model.read_single_property_in_lang(cls, RDFS.label, lang))
                if label:
                    break
        if not label:
            label = self.get_local_name()
        return label

    def get_tooltip(self, lang: str | None = None) -> str | None:
        lang = self._lang(lang)
        tooltip = _text(self.model.read_single_property_in_lang(
            self.resource, self.settings.message_property, lang))
        if not tooltip:
            tooltip = _text(self.model.read_single_property_in_lang(self.resource, RDFS.comment, lang))
        for cls in self.get_target_class():
            if tooltip:
                break
            tooltip = _text(self.model.read_single_property_in_lang(cls, SKOS.definition, lang))
            if not tooltip:
                tooltip = _text(self.model.read_single_property_in_lang(cls, RDFS.comment, lang))
        return tooltip


# ---------------------------------------------------------------------------
# PropertyShape
# ---------------------------------------------------------------------------

class PropertyShape(Shape):
    """A shape with exactly one sh:path."""

    def get_sh_path(self) -> Node:
        """Return the sh:path of this property shape.

        Raises MissingPathError when the shape has no sh:path.
        """
        path = self.model.read_single_property(self.resource, SH.path)
        if path is None:
            raise MissingPathError(f"Property shape {self.resource.n3()} has no sh:path")
        return path

    def get_property_path(self) -> PropertyPath:
        return PropertyPath(self.get_sh_path(), self.model)

    # -----------------------------------------------------------------------
    # Cardinalities and flags
    # -----------------------------------------------------------------------

    def get_sh_min_count(self) -> int | None:
        return self.model.read_single_property_as_number(self.resource, SH.minCount)

    def get_sh_max_count(self) -> int | None:
        return self.model.read_single_property_as_number(self.resource, SH.maxCount)

    def get_sh_qualified_min_count(self) -> int | None:
        return self.model.read_single_property_as_number(self.resource, SH.qualifiedMinCount)

    def get_sh_qualified_max_count(self) -> int | None:
        return self.model.read_single_property_as_number(self.resource, SH.qualifiedMaxCount)

    def get_sh_qualified_value_shape(self) -> Shape | None:
        value = self.model.read_single_property(self.resource, SH.qualifiedValueShape)
        return build_shape(value, self.model) if value is not None else None

    def is_single_line(self) -> bool:
        value = self.model.read_single_property(self.resource, SH12.singleLine)
        return isinstance(value, Literal) and value.toPython() is True

    # -----------------------------------------------------------------------
    # Range resolution
    # -----------------------------------------------------------------------

    def _range_candidates(self) -> list[Shape]:
        # Nested sh:or is flattened exactly one level: a member carrying its
        # own sh:or is replaced by that list's members, deeper lists are not
        # opened.
        members = self.get_sh_or()
        if not members:
            return [self]
        candidates: list[Shape] = []
        for member in members:
            shape = build_shape(member, self.model)
            inner = shape.get_sh_or()
            if inner:
                candidates.extend(build_shape(m, self.model) for m in inner)
            else:
                candidates.append(shape)
        return candidates

    def get_range_shapes(self) -> list[Shape]:
        """Return the shapes describing acceptable values of this property.

        Candidates are the sh:or members (one nested level flattened) or the
        property shape itself. A candidate with sh:node/sh:class contributes
        the shapes it resolves to; a candidate with another range constraint
        (sh:datatype, sh:nodeKind, ...) contributes itself. Order follows
        the sh:or list.
        """
        ranges: dict[Node, Shape] = {}
        for candidate in self._range_candidates():
            resolved = candidate.resolve_sh_node_or_sh_class()
            if resolved:
                for term in resolved:
                    ranges.setdefault(term, build_shape(term, self.model))
            elif candidate.has_range_constraint():
                ranges.setdefault(candidate.resource, candidate)
        return list(ranges.values())

    def get_shape_for_range(self, range_term: Node) -> Shape:
        """Return the shape constraining values of the given range.

        Walks the sh:or members, and the members of their own sh:or, in list
        order; the last one whose sh:node/sh:class resolves to range_term
        wins, so a matching nested member overrides its parent. Defaults to
        this property shape.
        """
        chosen: Shape | None = None
        for member in self.get_sh_or():
            shape = build_shape(member, self.model)
            if range_term in shape.resolve_sh_node_or_sh_class():
                chosen = shape
            for inner in shape.get_sh_or():
                inner_shape = build_shape(inner, self.model)
                if range_term in inner_shape.resolve_sh_node_or_sh_class():
                    chosen = inner_shape
        return chosen if chosen is not None else self

    def get_search_widgets_for_range(self, range_term: Node) -> list[Node]:
        """dash:searchWidget declared for a range, on the shape that constrains it."""
        return self.get_shape_for_range(range_term).get_dash_search_widget()

    # -----------------------------------------------------------------------
    # Labels
    # -----------------------------------------------------------------------

    def get_label(self, lang: str | None = None) -> str:
        """Human label: sh:name, then the label of the path property (or of its
        owl:inverseOf for inverse paths), then the path itself in local names."""
        lang = self._lang(lang)
        label = _text(self.model.read_single_property_in_lang(self.resource, SH.name, lang))

        if not label and self.model.has_property(self.resource, SH.path):
            path = self.get_sh_path()
            if isinstance(path, URIRef):
                label = _text(self.model.read_single_property_in_lang(path, RDFS.label, lang))
            else:
                inverse = PropertyPath(path, self.model).get_inverse_path()
                if isinstance(inverse, URIRef):
                    inverse_property = self.get_inverse_of(inverse)
                    if inverse_property is not None:
                        label = _text(self.model.read_single_property_in_lang(
                            inverse_property, RDFS.label, lang))

        if not label and self.model.has_property(self.resource, SH.path):
            label = self.get_property_path().to_sparql(use_local_name=True)
        if not label:
            label = self.get_local_name()
        return label

    def get_tooltip(self, lang: str | None = None) -> str | None:
        lang = self._lang(lang)
        tooltip = _text(self.model.read_single_property_in_lang(
            self.resource, self.settings.message_property, lang))
        if not tooltip:
            tooltip = _text(self.model.read_single_property_in_lang(self.resource, SH.description, lang))

        if self.model.has_property(self.resource, SH.path):
            path = self.get_sh_path()
            if not tooltip:
                tooltip = _text(self.model.read_single_property_in_lang(path, SKOS.definition, lang))
            if not tooltip:
                tooltip = _text(self.model.read_single_property_in_lang(path, RDFS.comment, lang))
        return tooltip

    # -----------------------------------------------------------------------
    # OWL inverses and property hierarchy
    # -----------------------------------------------------------------------

    def get_inverse_of(self, property: Node) -> Node | None:
        """Return the OWL property declared inverse of ``property``.

        ``property`` is an OWL property, not a property shape. owl:inverseOf
        is looked up in both directions.
        """
        inverses = self.model.read_property(property, OWL.inverseOf)
        if inverses:
            return inverses[0]
        inverses = self.model.find_subjects_of(OWL.inverseOf, property)
        if inverses:
            return inverses[0]
        return None

    def has_inverse_of_predicate(self) -> bool:
        path = self.get_sh_path()
        return isinstance(path, URIRef) and self.get_inverse_of(path) is not None

    def get_super_properties_of_path(self) -> list[Node]:
        """rdfs:subPropertyOf values of the path; empty for compound paths."""
        path = self.get_sh_path()
        if not isinstance(path, URIRef):
            return []
        return self.model.read_property(path, RDFS.subPropertyOf)

    def get_parent_properties(self) -> list[PropertyShape]:
        """Property shapes on the same node shape(s) whose path is a direct
        super-property of this shape's path."""
        owners = self.model.find_subjects_of(SH.property, self.resource)
        parents: dict[Node, None] = {}
        for super_property in self.get_super_properties_of_path():
            if not isinstance(super_property, URIRef):
                continue
            for candidate in self.model.find_subjects_of(SH.path, super_property):
                if any(self.model.has_triple(owner, SH.property, candidate) for owner in owners):
                    parents[candidate] = None
        return [PropertyShape(p, self.model) for p in parents]

    def get_inverse_sh_property(self) -> list[NodeShape]:
        """Node shapes this property shape is attached to through sh:property."""
        return [
            NodeShape(owner, self.model)
            for owner in self.model.find_subjects_of(SH.property, self.resource)
        ]
