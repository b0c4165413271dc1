"""Settings shared by the shape model and the SPARQL post-processor."""

from __future__ import annotations

from dataclasses import dataclass, field

from rdflib import URIRef

from .vocab import VOLIPI


@dataclass(frozen=True)
class Settings:
    """Tunable behavior of label resolution and query expansion.

    default_lang: language used when a label or tooltip is requested
        without one.
    message_property: UI annotation read first when building tooltips.
    placeholder: name of the focus-node variable inside sh:select queries
        ($this / ?this in SHACL-SPARQL).
    validate_expanded_queries: parse every expanded query with the SPARQL
        grammar before returning it.
    """
    default_lang: str = "en"
    message_property: URIRef = field(default=VOLIPI.message)
    placeholder: str = "this"
    validate_expanded_queries: bool = True


DEFAULT_SETTINGS = Settings()
