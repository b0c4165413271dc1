"""Vocabulary namespaces used by the shape model.

rdflib already ships SH, OWL, RDF, RDFS, SKOS and XSD. The UI-oriented
vocabularies (DASH, VOLIPI, SHACL-UI) are declared here as open namespaces.
"""

from __future__ import annotations

from rdflib import Namespace
from rdflib.namespace import OWL, RDF, RDFS, SH, SKOS, XSD

__all__ = [
    "DASH",
    "OWL",
    "RDF",
    "RDFS",
    "SH",
    "SH12",
    "SHUI",
    "SKOS",
    "VOLIPI",
    "XSD",
]

# rdflib's SH is a closed namespace; SHACL 1.2 terms (sh:singleLine, ...)
# are only reachable through an open one.
SH12 = Namespace(str(SH))

DASH = Namespace("http://datashapes.org/dash#")
VOLIPI = Namespace("http://data.sparna.fr/ontologies/volipi#")
SHUI = Namespace("http://www.w3.org/ns/shacl-ui#")
