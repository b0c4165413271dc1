"""Tests for NodeShape / PropertyShape views."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from rdflib import BNode, Literal, Namespace
from rdflib.namespace import RDF, SH, XSD

from shaclmodel.config import Settings
from shaclmodel.shacl_model import ShaclModel
from shaclmodel.shapes import NodeShape, PropertyShape, Shape, build_shape
from shaclmodel.types import AmbiguousTargetError, MissingPathError

EX = Namespace("http://example.org/")

PREFIXES = """
@prefix ex: <http://example.org/> .
@prefix sh: <http://www.w3.org/ns/shacl#> .
@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix skos: <http://www.w3.org/2004/02/skos/core#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .
@prefix dash: <http://datashapes.org/dash#> .
@prefix volipi: <http://data.sparna.fr/ontologies/volipi#> .
"""


def _model(turtle: str, **kwargs) -> ShaclModel:
    return ShaclModel.from_turtle(PREFIXES + turtle, **kwargs)


def _prop(turtle: str, **kwargs) -> PropertyShape:
    """Load a graph where ex:P is a property shape of ex:S and return ex:P."""
    model = _model("ex:S a sh:NodeShape ; sh:property ex:P .\n" + turtle, **kwargs)
    return PropertyShape(EX.P, model)


# ---------------------------------------------------------------------------
# Variant selection
# ---------------------------------------------------------------------------

class TestBuildShape:
    def test_shape_with_path_is_property_shape(self):
        prop = _prop("ex:P sh:path ex:knows .")
        assert isinstance(build_shape(EX.P, prop.model), PropertyShape)

    def test_shape_without_path_is_node_shape(self):
        prop = _prop("ex:P sh:path ex:knows .")
        assert isinstance(build_shape(EX.S, prop.model), NodeShape)

    def test_blank_node_shape(self):
        model = _model("ex:S sh:property [ sh:path ex:knows ] .")
        member = model.read_single_property(EX.S, SH.property)
        shape = model.get_shape(member)
        assert isinstance(shape, PropertyShape)
        assert shape.get_sh_path() == EX.knows

    def test_literal_rejected(self):
        with pytest.raises(ValueError, match="IRI or a blank node"):
            build_shape(Literal("x"), _model(""))

    def test_views_over_same_term_are_equal(self):
        prop = _prop("ex:P sh:path ex:knows .")
        assert PropertyShape(EX.P, prop.model) == prop
        assert build_shape(EX.P, prop.model) == prop

    def test_labels_defined_by_each_variant(self):
        assert "get_label" not in vars(Shape)
        assert "get_tooltip" not in vars(Shape)
        prop = _prop("ex:P sh:path ex:knows .")
        for shape in (build_shape(EX.S, prop.model), build_shape(EX.P, prop.model)):
            assert isinstance(shape.get_label("en"), str)
            shape.get_tooltip("en")


# ---------------------------------------------------------------------------
# Range resolution
# ---------------------------------------------------------------------------

class TestRangeShapes:
    def test_sh_node(self):
        prop = _prop("ex:P sh:path ex:knows ; sh:node ex:Foo .")
        ranges = prop.get_range_shapes()
        assert len(ranges) == 1
        assert ranges[0].resource == EX.Foo
        assert isinstance(ranges[0], NodeShape)

    def test_sh_or_of_nodes(self):
        prop = _prop("""
            ex:P sh:path ex:knows ;
                sh:or ( [ sh:node ex:Foo ] [ sh:node ex:Bar ] ) .
        """)
        assert [r.resource for r in prop.get_range_shapes()] == [EX.Foo, EX.Bar]

    def test_nested_sh_or_is_flattened_one_level(self):
        prop = _prop("""
            ex:P sh:path ex:knows ;
                sh:or ( [ sh:or ( [ sh:node ex:Baz ] ) ] ) .
        """)
        assert [r.resource for r in prop.get_range_shapes()] == [EX.Baz]

    def test_deeper_nesting_is_not_opened(self):
        prop = _prop("""
            ex:P sh:path ex:knows ;
                sh:or ( [ sh:or ( [ sh:or ( [ sh:node ex:Deep ] ) ] ) ] ) .
        """)
        assert prop.get_range_shapes() == []

    def test_sh_or_of_datatypes(self):
        prop = _prop("""
            ex:P sh:path ex:name ;
                sh:or ( [ sh:datatype xsd:string ] [ sh:datatype rdf:langString ] ) .
        """)
        ranges = prop.get_range_shapes()
        assert len(ranges) == 2
        assert all(isinstance(r.resource, BNode) for r in ranges)
        assert ranges[0].get_sh_datatype() == [XSD.string]
        assert ranges[1].get_sh_datatype() == [RDF.langString]

    def test_mixed_node_kinds_and_nested_datatypes(self):
        prop = _prop("""
            ex:P sh:path ex:creator ;
                sh:or (
                    [ sh:nodeKind sh:IRI ]
                    [ sh:nodeKind sh:Literal ;
                      sh:or ( [ sh:datatype xsd:string ] [ sh:datatype rdf:langString ] ) ]
                ) .
        """)
        ranges = prop.get_range_shapes()
        assert len(ranges) == 3
        assert ranges[0].get_sh_node_kind() == SH.IRI
        assert ranges[1].get_sh_datatype() == [XSD.string]
        assert ranges[2].get_sh_datatype() == [RDF.langString]

    def test_no_range(self):
        prop = _prop("ex:P sh:path ex:knows .")
        assert prop.get_range_shapes() == []

    def test_datatype_on_property_itself(self):
        prop = _prop("ex:P sh:path ex:name ; sh:datatype xsd:string .")
        assert prop.get_range_shapes() == [prop]

    def test_sh_class_resolves_to_targeting_shape(self):
        prop = _prop("""
            ex:P sh:path ex:knows ; sh:class ex:Person .
            ex:PersonShape sh:targetClass ex:Person .
        """)
        ranges = prop.get_range_shapes()
        assert [r.resource for r in ranges] == [EX.PersonShape]

    def test_sh_class_without_targeting_shape(self):
        prop = _prop("ex:P sh:path ex:knows ; sh:class ex:Person .")
        assert [r.resource for r in prop.get_range_shapes()] == [EX.Person]

    def test_duplicates_removed(self):
        prop = _prop("""
            ex:P sh:path ex:knows ;
                sh:or ( [ sh:node ex:Foo ] [ sh:node ex:Foo ] ) .
        """)
        assert [r.resource for r in prop.get_range_shapes()] == [EX.Foo]


class TestShapeForRange:
    DATA = """
        ex:P sh:path ex:knows ;
            sh:or (
                [ sh:class ex:Foo ; dash:searchWidget ex:ListWidget ]
                [ sh:class ex:Bar ]
            ) .
    """

    def test_member_for_range(self):
        prop = _prop(self.DATA)
        shape = prop.get_shape_for_range(EX.Foo)
        assert shape != prop
        assert shape.get_sh_class() == [EX.Foo]

    def test_search_widgets_for_range(self):
        prop = _prop(self.DATA)
        assert prop.get_search_widgets_for_range(EX.Foo) == [EX.ListWidget]
        assert prop.get_search_widgets_for_range(EX.Bar) == []

    def test_unknown_range_defaults_to_property(self):
        prop = _prop(self.DATA)
        assert prop.get_shape_for_range(EX.Unknown) == prop

    def test_last_matching_member_wins(self):
        prop = _prop("""
            ex:P sh:path ex:knows ;
                sh:or (
                    [ sh:class ex:Foo ; dash:searchWidget ex:FirstWidget ]
                    [ sh:class ex:Foo ; dash:searchWidget ex:SecondWidget ]
                ) .
        """)
        assert prop.get_search_widgets_for_range(EX.Foo) == [EX.SecondWidget]

    def test_nested_member_overrides_parent(self):
        prop = _prop("""
            ex:P sh:path ex:knows ;
                sh:or (
                    [ sh:class ex:Foo ; dash:searchWidget ex:OuterWidget ;
                      sh:or ( [ sh:class ex:Foo ; dash:searchWidget ex:InnerWidget ] ) ]
                ) .
        """)
        assert prop.get_search_widgets_for_range(EX.Foo) == [EX.InnerWidget]


# ---------------------------------------------------------------------------
# Constraint reads
# ---------------------------------------------------------------------------

class TestConstraints:
    def test_cardinalities(self):
        prop = _prop("""
            ex:P sh:path ex:knows ;
                sh:minCount 1 ; sh:maxCount 5 ;
                sh:qualifiedMinCount 2 ; sh:qualifiedMaxCount 3 ;
                sh:qualifiedValueShape ex:FooShape .
        """)
        assert prop.get_sh_min_count() == 1
        assert prop.get_sh_max_count() == 5
        assert prop.get_sh_qualified_min_count() == 2
        assert prop.get_sh_qualified_max_count() == 3
        qualified = prop.get_sh_qualified_value_shape()
        assert isinstance(qualified, NodeShape)
        assert qualified.resource == EX.FooShape

    def test_absent_cardinalities(self):
        prop = _prop("ex:P sh:path ex:knows .")
        assert prop.get_sh_min_count() is None
        assert prop.get_sh_max_count() is None
        assert prop.get_sh_qualified_value_shape() is None

    def test_sh_in(self):
        prop = _prop('ex:P sh:path ex:status ; sh:in ( "draft" "published" ) .')
        assert prop.get_sh_in() == [Literal("draft"), Literal("published")]
        assert prop.has_range_constraint()

    def test_sh_in_absent(self):
        assert _prop("ex:P sh:path ex:status .").get_sh_in() is None

    def test_has_value_and_node_kind(self):
        prop = _prop("ex:P sh:path ex:type ; sh:hasValue ex:Book ; sh:nodeKind sh:IRI .")
        assert prop.get_sh_has_value() == EX.Book
        assert prop.get_sh_node_kind() == SH.IRI

    def test_single_line(self):
        assert _prop("ex:P sh:path ex:name ; sh:singleLine true .").is_single_line()
        assert not _prop("ex:P sh:path ex:name ; sh:singleLine false .").is_single_line()
        assert not _prop("ex:P sh:path ex:name .").is_single_line()

    def test_missing_path(self):
        model = _model("ex:S a sh:NodeShape .")
        with pytest.raises(MissingPathError, match="has no sh:path"):
            PropertyShape(EX.Nothing, model).get_sh_path()

    def test_property_path(self):
        prop = _prop("ex:P sh:path [ sh:inversePath ex:knows ] .")
        assert prop.get_property_path().to_sparql() == "^<http://example.org/knows>"


# ---------------------------------------------------------------------------
# NodeShape
# ---------------------------------------------------------------------------

class TestNodeShape:
    def test_properties_sorted_by_order(self):
        model = _model("""
            ex:S sh:property ex:C , ex:A , ex:B .
            ex:A sh:path ex:a ; sh:order 2 .
            ex:B sh:path ex:b ; sh:order 1 .
            ex:C sh:path ex:c .
        """)
        props = NodeShape(EX.S, model).get_properties()
        assert [p.resource for p in props] == [EX.B, EX.A, EX.C]

    def test_targets(self):
        model = _model("""
            ex:S sh:targetClass ex:Person ;
                sh:target [ sh:select "SELECT $this WHERE { $this a ex:Person }" ] .
        """)
        shape = NodeShape(EX.S, model)
        assert shape.get_target_class() == [EX.Person]
        assert len(shape.get_targets()) == 1
        assert shape.get_target_select() == "SELECT $this WHERE { $this a ex:Person }"

    def test_no_target_select(self):
        model = _model("ex:S sh:targetClass ex:Person .")
        assert NodeShape(EX.S, model).get_target_select() is None

    def test_several_target_selects(self):
        model = _model("""
            ex:S sh:target [ sh:select "SELECT $this WHERE { $this a ex:A }" ] ,
                           [ sh:select "SELECT $this WHERE { $this a ex:B }" ] .
        """)
        with pytest.raises(AmbiguousTargetError, match="expected at most one"):
            NodeShape(EX.S, model).get_target_select()

    def test_label_from_rdfs_label(self):
        model = _model('ex:PersonShape rdfs:label "Person"@en , "Personne"@fr ; sh:name "P"@en .')
        shape = NodeShape(EX.PersonShape, model)
        assert shape.get_label() == "Person"
        assert shape.get_label("fr") == "Personne"

    def test_label_from_sh_name(self):
        model = _model('ex:PersonShape sh:name "Someone"@en .')
        assert NodeShape(EX.PersonShape, model).get_label("en") == "Someone"

    def test_label_from_target_class(self):
        model = _model("""
            ex:PersonShape sh:targetClass ex:Person .
            ex:Person rdfs:label "Human"@en .
        """)
        assert NodeShape(EX.PersonShape, model).get_label("en") == "Human"

    def test_label_falls_back_to_local_name(self):
        model = _model("ex:PersonShape a sh:NodeShape .")
        assert NodeShape(EX.PersonShape, model).get_label("en") == "PersonShape"

    def test_default_lang_from_settings(self):
        model = _model(
            'ex:PersonShape rdfs:label "Person"@en , "Personne"@fr .',
            settings=Settings(default_lang="fr"),
        )
        assert NodeShape(EX.PersonShape, model).get_label() == "Personne"

    def test_tooltip_from_message(self):
        model = _model("""
            ex:PersonShape volipi:message "Pick a person"@en ; rdfs:comment "A person"@en .
        """)
        assert NodeShape(EX.PersonShape, model).get_tooltip("en") == "Pick a person"

    def test_tooltip_from_target_class_definition(self):
        model = _model("""
            ex:PersonShape sh:targetClass ex:Person .
            ex:Person skos:definition "A human being"@en .
        """)
        assert NodeShape(EX.PersonShape, model).get_tooltip("en") == "A human being"

    def test_no_tooltip(self):
        model = _model("ex:PersonShape a sh:NodeShape .")
        assert NodeShape(EX.PersonShape, model).get_tooltip("en") is None


# ---------------------------------------------------------------------------
# PropertyShape labels and tooltips
# ---------------------------------------------------------------------------

class TestPropertyShapeLabels:
    def test_label_from_sh_name(self):
        prop = _prop('ex:P sh:path ex:firstName ; sh:name "First name"@en , "Prénom"@fr .')
        assert prop.get_label() == "First name"
        assert prop.get_label("fr") == "Prénom"

    def test_label_from_path_property(self):
        prop = _prop("""
            ex:P sh:path ex:knows .
            ex:knows rdfs:label "knows someone"@en .
        """)
        assert prop.get_label("en") == "knows someone"

    def test_label_from_inverse_property(self):
        prop = _prop("""
            ex:P sh:path [ sh:inversePath ex:author ] .
            ex:authorOf owl:inverseOf ex:author ; rdfs:label "author of"@en .
        """)
        assert prop.get_label("en") == "author of"

    def test_label_from_inverse_declared_the_other_way(self):
        prop = _prop("""
            ex:P sh:path [ sh:inversePath ex:author ] .
            ex:author owl:inverseOf ex:wrote .
            ex:wrote rdfs:label "wrote"@en .
        """)
        assert prop.get_label("en") == "wrote"

    def test_label_falls_back_to_path(self):
        prop = _prop("ex:P sh:path ( ex:knows ex:name ) .")
        assert prop.get_label("en") == "knows/name"

    def test_label_falls_back_to_predicate_local_name(self):
        prop = _prop("ex:P sh:path ex:knows .")
        assert prop.get_label("en") == "knows"

    def test_tooltip_order(self):
        prop = _prop("""
            ex:P sh:path ex:knows ;
                volipi:message "message"@en ;
                sh:description "description"@en .
            ex:knows skos:definition "definition"@en ; rdfs:comment "comment"@en .
        """)
        assert prop.get_tooltip("en") == "message"

    def test_tooltip_from_description(self):
        prop = _prop("""
            ex:P sh:path ex:knows ; sh:description "description"@en .
            ex:knows rdfs:comment "comment"@en .
        """)
        assert prop.get_tooltip("en") == "description"

    def test_tooltip_from_path_definition(self):
        prop = _prop("""
            ex:P sh:path ex:knows .
            ex:knows skos:definition "definition"@en ; rdfs:comment "comment"@en .
        """)
        assert prop.get_tooltip("en") == "definition"

    def test_tooltip_from_path_comment(self):
        prop = _prop("""
            ex:P sh:path ex:knows .
            ex:knows rdfs:comment "comment"@en .
        """)
        assert prop.get_tooltip("en") == "comment"

    def test_no_tooltip(self):
        assert _prop("ex:P sh:path ex:knows .").get_tooltip("en") is None


# ---------------------------------------------------------------------------
# OWL inverses and property hierarchy
# ---------------------------------------------------------------------------

class TestPropertyHierarchy:
    DATA = """
        ex:PersonShape a sh:NodeShape ; sh:property ex:FirstNameProp , ex:NameProp .
        ex:FirstNameProp sh:path ex:firstName .
        ex:NameProp sh:path ex:name .
        ex:OtherShape a sh:NodeShape ; sh:property ex:OtherNameProp .
        ex:OtherNameProp sh:path ex:name .
        ex:firstName rdfs:subPropertyOf ex:name .
    """

    def test_super_properties_of_path(self):
        model = _model(self.DATA)
        prop = PropertyShape(EX.FirstNameProp, model)
        assert prop.get_super_properties_of_path() == [EX.name]

    def test_super_properties_of_compound_path(self):
        prop = _prop("ex:P sh:path ( ex:a ex:b ) .")
        assert prop.get_super_properties_of_path() == []

    def test_parent_properties_on_same_node_shape(self):
        model = _model(self.DATA)
        parents = PropertyShape(EX.FirstNameProp, model).get_parent_properties()
        assert parents == [PropertyShape(EX.NameProp, model)]

    def test_no_parent_properties(self):
        model = _model(self.DATA)
        assert PropertyShape(EX.NameProp, model).get_parent_properties() == []

    def test_inverse_sh_property(self):
        model = _model(self.DATA)
        owners = PropertyShape(EX.FirstNameProp, model).get_inverse_sh_property()
        assert owners == [NodeShape(EX.PersonShape, model)]

    def test_inverse_of_both_directions(self):
        prop = _prop("""
            ex:P sh:path ex:knows .
            ex:knows owl:inverseOf ex:knownBy .
        """)
        assert prop.get_inverse_of(EX.knows) == EX.knownBy
        assert prop.get_inverse_of(EX.knownBy) == EX.knows
        assert prop.get_inverse_of(EX.name) is None
        assert prop.has_inverse_of_predicate()

    def test_compound_path_has_no_inverse_of_predicate(self):
        prop = _prop("""
            ex:P sh:path [ sh:inversePath ex:knows ] .
            ex:knows owl:inverseOf ex:knownBy .
        """)
        assert not prop.has_inverse_of_predicate()
