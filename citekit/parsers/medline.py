"""Medline/NBIB tagged-text parser (PubMed "Citation manager" export)."""

import logging
import re
from typing import Optional

from citekit.parsers.fields import (
    FieldChain,
    as_is,
    before_first_period,
    build_citation,
    collect_fields,
    first_valid_doi,
    joined,
    last_value,
    resolve_chain,
    values,
)
from citekit.parsers.models import CitationRecord

logger = logging.getLogger(__name__)

RECORD_START_TAG = "PMID"

_TAG_RE = re.compile(r"^([A-Z]{1,4})\s*-")

_JOURNAL_CHAIN: FieldChain = (
    ("JT", as_is),  # full journal title
    ("TA", as_is),  # journal abbreviation
    ("SO", before_first_period),  # source string, e.g. "Lancet. 2020 ..."
    ("PL", as_is),  # place of publication
)
_DOI_TAGS = ("LID", "AID")


# ── Public API ───────────────────────────────────────────────────────


def parse_medline(
    raw_text: str, source_label: Optional[str] = None
) -> list[CitationRecord]:
    """Parse Medline/NBIB export text into citation records.

    Records without a title are dropped. Empty input yields an empty list.
    """
    citations: list[CitationRecord] = []
    for pairs in tokenize_medline(raw_text):
        citation = assemble_medline(pairs, source_label)
        if citation:
            citations.append(citation)

    logger.info(
        "Parsed %d Medline records (%s)", len(citations), source_label or "unlabelled"
    )
    return citations


# ── Tokenizer ────────────────────────────────────────────────────────


def tokenize_medline(raw_text: str) -> list[list[tuple[str, str]]]:
    """Split Medline text into per-record lists of (tag, value) pairs.

    A ``PMID`` tag line opens a new record; anything before the first one is
    ignored. Indented lines continue the previous tag's value. A non-blank
    line that is not tag-shaped is also treated as a continuation, since some
    exports wrap long fields without indenting. A blank line ends the field.
    """
    records: list[list[tuple[str, str]]] = []
    current: list[tuple[str, str]] | None = None
    in_field = False

    for line in raw_text.lstrip("\ufeff").splitlines():
        if not line.strip():
            in_field = False
            continue

        if line[0].isspace():
            if in_field:
                _continue_last(current, line)
            continue

        match = _TAG_RE.match(line)
        if match:
            tag = match.group(1)
            if tag == RECORD_START_TAG:
                current = []
                records.append(current)
            if current is None:
                continue
            current.append((tag, _tag_value(line, match.end())))
            in_field = True
        elif in_field:
            _continue_last(current, line)

    return records


def _tag_value(line: str, dash_end: int) -> str:
    """Text after the dash, with at most one leading space removed."""
    value = line[dash_end:]
    if value.startswith(" "):
        value = value[1:]
    return value.rstrip()


def _continue_last(pairs: list[tuple[str, str]], line: str) -> None:
    tag, value = pairs[-1]
    fragment = line.strip()
    pairs[-1] = (tag, f"{value} {fragment}" if value else fragment)


# ── Assembly ─────────────────────────────────────────────────────────


def assemble_medline(
    pairs: list[tuple[str, str]], source_label: Optional[str] = None
) -> CitationRecord | None:
    """Build one record from its Medline (tag, value) pairs."""
    fields = collect_fields(pairs)

    # Full author names are only a fallback for exports that omit AU
    authors = values(pairs, "AU") or values(pairs, "FAU")

    return build_citation(
        source_format="medline",
        identifier=last_value(fields, RECORD_START_TAG),
        title=joined(pairs, "TI"),
        abstract=joined(pairs, "AB"),
        journal=resolve_chain(fields, _JOURNAL_CHAIN),
        doi=first_valid_doi(values(pairs, *_DOI_TAGS)),
        authors=authors,
        source_label=source_label,
    )
