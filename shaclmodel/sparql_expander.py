"""SPARQL post-processing: inline sh:target/sh:select definitions.

A query may refer to a node shape as if it were a class:

    SELECT ?x WHERE { ?x a <http://example.org/PersonShape> . }

When that shape declares

    ex:PersonShape sh:target [ sh:select "SELECT $this WHERE { $this a ex:Person }" ] .

the type pattern is replaced by the WHERE body of the sh:select, with $this
renamed to ?x, and the PREFIX declarations of the sh:select are merged into
the query prologue:

    SELECT ?x WHERE { ?x a ex:Person . }

Splicing is textual. scan_sparql() tells code apart from IRIs, string literals
and comments, so only patterns in code are rewritten and comments of the
sh:select are dropped. The result is checked with rdflib's SPARQL parser.
"""

from __future__ import annotations

import re
from typing import Callable, Iterator, Mapping

from rdflib import URIRef
from rdflib.plugins.sparql import prepareQuery
from rdflib.term import Node
from loguru import logger

from .config import Settings
from .shacl_model import ShaclModel
from .shapes import NodeShape
from .types import AmbiguousTargetError, SparqlExpansionError
from .vocab import RDF, SH


_PREFIX_RE = re.compile(
    r"PREFIX\s+(?P<label>[A-Za-z_][\w\-.]*)?:\s*<(?P<iri>[^<>\s]*)>",
    re.IGNORECASE,
)

_TERM = r"(?:<[^<>\s]*>|[A-Za-z_][\w\-.]*:[\w\-]*|:[\w\-]+)"

# ?var <verb> <object> followed by '.', ';' or the closing brace of the group
_TYPE_PATTERN_RE = re.compile(
    r"(?P<subject>[?$][A-Za-z_]\w*)\s+"
    r"(?P<verb>a|" + _TERM + r")\s+"
    r"(?P<object>" + _TERM + r")"
    r"(?P<end>\s*\.|\s*;|(?=\s*\}))"
)

_IRI_RE = re.compile(r"<[^<>\"{}|^`\\\s]*>")


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def parse_prefixes(query: str) -> dict[str, str]:
    """Return the PREFIX declarations of a query as {label: namespace IRI}."""
    prefixes: dict[str, str] = {}
    for match in _PREFIX_RE.finditer(strip_comments(query)):
        prefixes.setdefault(match["label"] or "", match["iri"])
    return prefixes


def scan_sparql(query: str) -> Iterator[tuple[str, int, int]]:
    """Split SPARQL text into consecutive (kind, start, end) spans.

    kind is "iri", "string", "comment" or "code". A comment runs up to, not
    including, the end of its line.
    """
    n = len(query)
    code_start = 0
    i = 0
    while i < n:
        ch = query[i]
        kind = end = None
        if ch == "<":
            iri = _IRI_RE.match(query, i)
            if iri:
                kind, end = "iri", iri.end()
        elif ch in "\"'":
            kind, end = "string", _skip_string(query, i)
        elif ch == "#":
            newline = query.find("\n", i)
            kind, end = "comment", n if newline == -1 else newline
        if kind is None:
            i += 1
            continue
        if code_start < i:
            yield "code", code_start, i
        yield kind, i, end
        i = code_start = end
    if code_start < n:
        yield "code", code_start, n


def extract_where_body(query: str) -> str:
    """Return the text between the outermost braces of a query.

    Braces inside IRIs, string literals and comments are ignored. Raises
    AmbiguousTargetError when the query has no balanced group.
    """
    start = None
    depth = 0
    for kind, span_start, span_end in scan_sparql(query):
        if kind != "code":
            continue
        for i in range(span_start, span_end):
            ch = query[i]
            if ch == "{":
                if start is None:
                    start = i + 1
                depth += 1
            elif ch == "}" and start is not None:
                depth -= 1
                if depth == 0:
                    return query[start:i]
    raise AmbiguousTargetError(f"No balanced WHERE clause found in: {query!r}")


def strip_comments(query: str) -> str:
    """Remove '#' comments, keeping the line breaks that end them."""
    return "".join(
        query[start:end] for kind, start, end in scan_sparql(query) if kind != "comment"
    )


def _skip_string(query: str, i: int) -> int:
    quote = query[i]
    delimiter = quote * 3 if query.startswith(quote * 3, i) else quote
    j = i + len(delimiter)
    while j < len(query):
        if query[j] == "\\":
            j += 2
            continue
        if query.startswith(delimiter, j):
            return j + len(delimiter)
        j += 1
    return len(query)


def _sub_code(pattern: re.Pattern, repl: Callable[[re.Match], str], query: str) -> str:
    """re.sub restricted to the code spans of a query."""
    return "".join(
        pattern.sub(repl, query[start:end]) if kind == "code" else query[start:end]
        for kind, start, end in scan_sparql(query)
    )


def _in_code(pattern: re.Pattern, query: str) -> bool:
    return any(
        pattern.search(query, start, end)
        for kind, start, end in scan_sparql(query)
        if kind == "code"
    )


def _variable_re(name: str) -> re.Pattern:
    return re.compile(r"[?$]" + re.escape(name) + r"\b")


def _prefixed_name_re(label: str) -> re.Pattern:
    return re.compile(
        r"(?<![\w\-.:?$])" + re.escape(label) + r":(?P<local>(?:[\w\-]|\.(?=[\w\-]))*)"
    )


def expand_prefixed_names(body: str, label: str, namespace: str) -> str:
    """Rewrite ``label:local`` names of a query fragment as full ``<namespace local>`` IRIs."""
    return _sub_code(_prefixed_name_re(label), lambda m: f"<{namespace}{m['local']}>", body)



# ---------------------------------------------------------------------------
# Post-processor
# ---------------------------------------------------------------------------

class ShaclSparqlPostProcessor:
    """Rewrites queries that use node shapes with sh:target/sh:select as types."""

    def __init__(self, model: ShaclModel, settings: Settings | None = None):
        self.model = model
        self.settings = settings or model.settings

    def expand_sparql(self, query: str, bindings: Mapping[str, Node | str] | None = None) -> str:
        """Inline the sh:select of every shape used as ``?var a <Shape>``.

        Patterns referring to shapes without a sh:target/sh:select are left
        untouched, and so are patterns inside comments and string literals.
        When the sh:select binds a prefix label the query binds to another
        namespace, its names are written as full IRIs. ``bindings`` maps
        variable names to replacement values; it is applied to the final
        query text.

        Raises AmbiguousTargetError for an unusable sh:select and
        SparqlExpansionError when the result does not parse.
        """
        outer_prefixes = parse_prefixes(query)
        added_prefixes: dict[str, str] = {}
        fragments: dict[URIRef, tuple[str, dict[str, str]] | None] = {}

        def replace(match: re.Match) -> str:
            if self._resolve(match["verb"], outer_prefixes) != RDF.type:
                return match.group(0)
            shape_iri = self._resolve(match["object"], outer_prefixes)
            if shape_iri is None:
                return match.group(0)
            if shape_iri not in fragments:
                fragments[shape_iri] = self._target_fragment(shape_iri)
            fragment = fragments[shape_iri]
            if fragment is None:
                return match.group(0)

            body, inner_prefixes = fragment
            subject = match["subject"]
            for label, iri in inner_prefixes.items():
                declared = added_prefixes.get(label, outer_prefixes.get(label))
                if declared is None:
                    added_prefixes[label] = iri
                elif declared != iri:
                    logger.debug(
                        f"Prefix '{label}:' of {shape_iri} sh:select is {iri}, the query binds it "
                        f"to {declared}: writing '{label}:' names as full IRIs"
                    )
                    body = expand_prefixed_names(body, label, iri)
            expanded = _sub_code(_variable_re(self.settings.placeholder), lambda _: subject, body)
            logger.debug(f"Expanded {subject} a <{shape_iri}> into: {expanded}")
            if match["end"].strip() == ";":
                # keep the rest of the predicate-object list attached to the subject
                return f"{expanded} {subject}"
            return expanded

        ignored = [
            (start, end)
            for kind, start, end in scan_sparql(query)
            if kind in ("string", "comment")
        ]
        parts = []
        last = pos = 0
        while True:
            match = _TYPE_PATTERN_RE.search(query, pos)
            if match is None:
                break
            if any(start <= match.start() < end for start, end in ignored):
                pos = match.start() + 1
                continue
            parts.append(query[last:match.start()])
            parts.append(replace(match))
            last = pos = match.end()
        parts.append(query[last:])
        result = "".join(parts)

        if added_prefixes:
            prologue = "".join(f"PREFIX {label}: <{iri}>\n" for label, iri in added_prefixes.items())
            result = prologue + result

        for name, value in (bindings or {}).items():
            rendered = value.n3() if isinstance(value, Node) else str(value)
            result = _sub_code(_variable_re(name.lstrip("?$")), lambda _: rendered, result)

        if self.settings.validate_expanded_queries:
            self.validate(result)
        return result

    @staticmethod
    def validate(query: str) -> None:
        """Parse a query with rdflib's SPARQL grammar; raise SparqlExpansionError on failure."""
        try:
            prepareQuery(query)
        except Exception as e:
            raise SparqlExpansionError(f"Expanded query is not valid SPARQL: {e}\n{query}") from e

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    @staticmethod
    def _resolve(token: str, prefixes: dict[str, str]) -> URIRef | None:
        if token == "a":
            return RDF.type
        if token.startswith("<"):
            return URIRef(token[1:-1])
        label, _, local = token.partition(":")
        namespace = prefixes.get(label)
        if namespace is None:
            return None
        return URIRef(namespace + local)

    def _target_fragment(self, shape_iri: URIRef) -> tuple[str, dict[str, str]] | None:
        """Return (WHERE body, PREFIX declarations) of the shape's sh:select, if any."""
        if not self.model.has_property(shape_iri, SH.target):
            return None
        select = NodeShape(shape_iri, self.model).get_target_select()
        if select is None:
            return None

        placeholder = self.settings.placeholder
        uses_dollar = _in_code(re.compile(r"\$" + re.escape(placeholder) + r"\b"), select)
        uses_question = _in_code(re.compile(r"\?" + re.escape(placeholder) + r"\b"), select)
        if uses_dollar and uses_question:
            raise AmbiguousTargetError(
                f"sh:select of {shape_iri} uses both ${placeholder} and ?{placeholder}"
            )
        if not uses_dollar and not uses_question:
            raise AmbiguousTargetError(
                f"sh:select of {shape_iri} uses neither ${placeholder} nor ?{placeholder}"
            )

        body = strip_comments(extract_where_body(select)).strip()
        if body and not body.endswith("."):
            body += " ."
        return body, parse_prefixes(select)
