"""RIS tagged-text parser (EndNote, Zotero, Scopus, Web of Science exports)."""

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
    resolve_chain,
    values,
)
from citekit.parsers.models import CitationRecord

logger = logging.getLogger(__name__)

END_TAG = "ER"
FALLBACK_ID_LENGTH = 15

_TAG_RE = re.compile(r"^([A-Z0-9]{2})\s*-\s*(.*)$")

_TITLE_TAGS = ("TI", "T1")
_ALT_TITLE_CHAIN: FieldChain = (
    ("ST", as_is),  # short title
    ("TT", as_is),  # translated title
)
_JOURNAL_CHAIN: FieldChain = (
    ("JF", as_is),  # full journal name
    ("JO", as_is),  # journal name
    ("T2", as_is),  # secondary title
    ("JA", as_is),  # standard abbreviation
    ("J1", as_is),  # user abbreviation 1
    ("J2", as_is),  # user abbreviation 2
    ("SO", before_first_period),  # source string
)
_ID_CHAIN: FieldChain = (
    ("AN", as_is),  # accession number
    ("ID", as_is),  # reference id
    ("M1", as_is),  # miscellaneous
)
_AUTHOR_TAGS = ("AU", "A1")


# ── Public API ───────────────────────────────────────────────────────


def parse_ris(raw_text: str, source_label: Optional[str] = None) -> list[CitationRecord]:
    """Parse RIS export text into citation records.

    Records without a title are dropped. Empty input yields an empty list.
    """
    citations: list[CitationRecord] = []
    for pairs in tokenize_ris(raw_text):
        citation = assemble_ris(pairs, source_label)
        if citation:
            citations.append(citation)

    logger.info(
        "Parsed %d RIS records (%s)", len(citations), source_label or "unlabelled"
    )
    return citations


# ── Tokenizer ────────────────────────────────────────────────────────


def tokenize_ris(raw_text: str) -> list[list[tuple[str, str]]]:
    """Split RIS text into per-record lists of (tag, value) pairs.

    Lines that are not ``XX  - value`` shaped are skipped; RIS has no
    continuation lines. Tags after the last ``ER`` still form a record.
    """
    records: list[list[tuple[str, str]]] = []
    current: list[tuple[str, str]] = []

    for line in raw_text.lstrip("\ufeff").splitlines():
        match = _TAG_RE.match(line)
        if not match:
            continue
        tag, value = match.group(1), match.group(2).strip()
        if tag == END_TAG:
            if current:
                records.append(current)
            current = []
            continue
        current.append((tag, value))

    if current:
        records.append(current)
    return records


# ── Assembly ─────────────────────────────────────────────────────────


def assemble_ris(
    pairs: list[tuple[str, str]], source_label: Optional[str] = None
) -> CitationRecord | None:
    """Build one record from its RIS (tag, value) pairs."""
    fields = collect_fields(pairs)

    title = joined(pairs, *_TITLE_TAGS) or resolve_chain(fields, _ALT_TITLE_CHAIN)
    identifier = resolve_chain(fields, _ID_CHAIN) or title.strip()[:FALLBACK_ID_LENGTH]

    return build_citation(
        source_format="ris",
        identifier=identifier,
        title=title,
        abstract=joined(pairs, "AB") or joined(pairs, "N2"),
        journal=resolve_chain(fields, _JOURNAL_CHAIN),
        doi=first_valid_doi(values(pairs, "DO")),
        authors=values(pairs, *_AUTHOR_TAGS),
        source_label=source_label,
    )
