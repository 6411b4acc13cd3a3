"""Record assembly: field fallback chains, DOI validation, and defaults.

Both tokenizers hand their per-record ``(tag, value)`` pairs to the helpers
here, so the rules for turning raw tags into a ``CitationRecord`` live in
one place and stay free of side effects.
"""

import hashlib
import json
import logging
import re
from typing import Callable, Iterable, Optional, Sequence

from citekit.parsers.models import (
    AUTHOR_SEPARATOR,
    MAX_AUTHORS,
    NO_ABSTRACT,
    NOT_AVAILABLE,
    UNKNOWN_AUTHORS,
    UNKNOWN_JOURNAL,
    CitationFormat,
    CitationRecord,
)

logger = logging.getLogger(__name__)

TagFields = dict[str, list[str]]
Extractor = Callable[[str], str]
FieldChain = Sequence[tuple[str, Extractor]]

_ANNOTATION_RE = re.compile(r"\[[^\]]*\]")
_SPACE_RE = re.compile(r"\s+")
_TITLE_KEY_RE = re.compile(r"[^a-z0-9]")
_DOI_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
    "doi:",
)


# ── Tag Grouping ─────────────────────────────────────────────────────


def collect_fields(pairs: Iterable[tuple[str, str]]) -> TagFields:
    """Group tag values in encounter order."""
    fields: TagFields = {}
    for tag, value in pairs:
        fields.setdefault(tag, []).append(value)
    return fields


def values(pairs: Iterable[tuple[str, str]], *tags: str) -> list[str]:
    """Non-empty values of any of ``tags``, interleaved in encounter order."""
    return [v.strip() for tag, v in pairs if tag in tags and v.strip()]


def joined(pairs: Iterable[tuple[str, str]], *tags: str) -> str:
    """Space-join the values of ``tags`` in encounter order."""
    return " ".join(values(pairs, *tags))


def last_value(fields: TagFields, tag: str) -> str:
    """Value of the final occurrence of ``tag`` (later tags overwrite earlier)."""
    found = fields.get(tag)
    return found[-1].strip() if found else ""


def resolve_chain(fields: TagFields, chain: FieldChain) -> str:
    """Return the first non-empty value from an ordered (tag, extractor) table."""
    for tag, extract in chain:
        value = extract(last_value(fields, tag))
        if value:
            return value
    return ""


# ── Extractors ───────────────────────────────────────────────────────


def as_is(value: str) -> str:
    return value.strip()


def before_first_period(value: str) -> str:
    """'Lancet. 2020 Feb;395:497-506.' -> 'Lancet'"""
    return value.split(".", 1)[0].strip()


# ── DOI ──────────────────────────────────────────────────────────────


def strip_annotations(value: str) -> str:
    """Drop bracketed annotations like ``[doi]`` and collapse whitespace."""
    value = _ANNOTATION_RE.sub(" ", value)
    return _SPACE_RE.sub(" ", value).strip()


def normalize_doi(value: str) -> str:
    """Return a bare DOI starting with ``10.``, or ``N/A``."""
    doi = strip_annotations(value)
    lowered = doi.lower()
    for prefix in _DOI_PREFIXES:
        if lowered.startswith(prefix):
            doi = doi[len(prefix):].strip()
            break
    # A DOI never contains whitespace; keep the leading token only
    doi = doi.split(" ", 1)[0]
    return doi if doi.startswith("10.") else NOT_AVAILABLE


def first_valid_doi(candidates: Iterable[str]) -> str:
    """First candidate that normalizes to a DOI, in encounter order."""
    for candidate in candidates:
        doi = normalize_doi(candidate)
        if doi != NOT_AVAILABLE:
            return doi
    return NOT_AVAILABLE


# ── Authors ──────────────────────────────────────────────────────────


def format_authors(authors: Iterable[str]) -> str:
    """First five non-empty authors joined by '; ', or the unknown marker."""
    kept = [a.strip() for a in authors if a and a.strip()][:MAX_AUTHORS]
    return AUTHOR_SEPARATOR.join(kept) if kept else UNKNOWN_AUTHORS


# ── Identity ─────────────────────────────────────────────────────────


def normalize_title(title: str) -> str:
    """Lowercase and drop everything but ASCII letters and digits."""
    return _TITLE_KEY_RE.sub("", title.lower())


def content_id(title: str, doi: str) -> str:
    """Stable record id derived from the normalized title and DOI."""
    blob = json.dumps(
        {"doi": doi, "title": normalize_title(title)}, sort_keys=True
    ).encode()
    return hashlib.sha256(blob).hexdigest()[:16]


# ── Assembly ─────────────────────────────────────────────────────────


def build_citation(
    *,
    source_format: CitationFormat,
    title: str,
    identifier: str = "",
    abstract: str = "",
    journal: str = "",
    doi: str = NOT_AVAILABLE,
    authors: Iterable[str] = (),
    source_label: Optional[str] = None,
) -> CitationRecord | None:
    """Apply defaults and build a record; ``None`` when the title is empty."""
    title = title.strip()
    if not title:
        logger.debug("Dropping %s record %r with no title", source_format, identifier)
        return None

    doi = normalize_doi(doi) if doi != NOT_AVAILABLE else doi

    return CitationRecord(
        record_id=content_id(title, doi),
        identifier=identifier.strip() or NOT_AVAILABLE,
        title=title,
        abstract=abstract.strip() or NO_ABSTRACT,
        journal=journal.strip() or UNKNOWN_JOURNAL,
        doi=doi,
        authors=format_authors(authors),
        source_label=source_label,
        source_format=source_format,
    )
