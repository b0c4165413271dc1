"""shaclmodel — SHACL shape graphs as a navigable model for UI generators.

Form and search interfaces built from SHACL need more than validation. They
need to walk shapes, show property paths and query the data a shape selects.
This package reads a shape graph (an rdflib Graph) and provides:

- Property paths: any SHACL path rendered as a SPARQL property path
  (property_path.PropertyPath.to_sparql)
- Shape model: NodeShape / PropertyShape views with range resolution through
  sh:or, sh:node and sh:class, labels, tooltips and owl:inverseOf lookups
  (shapes, shacl_model.ShaclModel)
- Inverse synthesis: a one-off pass adding [ sh:inversePath p ] property
  shapes on range shapes (ShaclModel.add_inverse_property_shapes)
- Query expansion: ``?x a <Shape>`` patterns rewritten with the shape's
  sh:target/sh:select (sparql_expander.ShaclSparqlPostProcessor)

Logging goes through loguru and is disabled by default, as for any library;
call ``logger.enable("shaclmodel")`` to see it.
"""

from loguru import logger

from .config import DEFAULT_SETTINGS, Settings
from .model import Model
from .property_path import PropertyPath, parse_path, render_path
from .shacl_model import ShaclModel
from .shapes import NodeShape, PropertyShape, Shape, build_shape
from .sparql_expander import ShaclSparqlPostProcessor
from .types import (
    AmbiguousTargetError,
    MalformedListError,
    MissingPathError,
    MultipleValuesError,
    ShaclModelError,
    SparqlExpansionError,
    UnsupportedPathError,
)

logger.disable("shaclmodel")

__all__ = [
    "DEFAULT_SETTINGS",
    "AmbiguousTargetError",
    "MalformedListError",
    "MissingPathError",
    "Model",
    "MultipleValuesError",
    "NodeShape",
    "PropertyPath",
    "PropertyShape",
    "Settings",
    "ShaclModel",
    "ShaclModelError",
    "ShaclSparqlPostProcessor",
    "Shape",
    "SparqlExpansionError",
    "UnsupportedPathError",
    "build_shape",
    "parse_path",
    "render_path",
]
