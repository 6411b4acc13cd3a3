"""Merge parsed citation batches into an existing collection, dropping duplicates."""

import logging
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel

from citekit.parsers import parse_batch
from citekit.parsers.fields import normalize_title
from citekit.parsers.models import NOT_AVAILABLE, CitationRecord, SourceBatch

logger = logging.getLogger(__name__)

__all__ = [
    "MergeResult",
    "is_duplicate",
    "merge_citations",
    "normalize_title",
    "process_batches",
]


# ── Result Model ─────────────────────────────────────────────────────


class MergeResult(BaseModel):
    """Result of folding new citations into a collection."""

    citations: list[CitationRecord]
    duplicate_count: int
    duplicate_pairs: list[tuple[str, str]]  # (kept title, dropped title)
    stats: dict


# ── Public API ───────────────────────────────────────────────────────


def process_batches(
    batches: Sequence[SourceBatch],
    existing: Sequence[CitationRecord] = (),
) -> tuple[list[CitationRecord], int]:
    """Parse every batch in order and merge the results into ``existing``.

    Returns the merged collection and the number of duplicates dropped.
    """
    parsed: list[CitationRecord] = []
    for batch in batches:
        parsed.extend(parse_batch(batch))

    result = merge_citations(parsed, existing)
    return result.citations, result.duplicate_count


def merge_citations(
    new: Iterable[CitationRecord],
    existing: Sequence[CitationRecord] = (),
) -> MergeResult:
    """Append each new citation unless it duplicates one already kept.

    Existing citations are kept as-is and come first. New citations are
    checked against everything accepted so far, so duplicates inside the
    incoming records are caught too. First occurrence wins.
    """
    doi_index: dict[str, int] = {}
    title_index: dict[str, int] = {}

    merged: list[CitationRecord] = []
    duplicate_pairs: list[tuple[str, str]] = []

    for cit in existing:
        _index(cit, len(merged), doi_index, title_index)
        merged.append(cit)

    new_total = 0
    for cit in new:
        new_total += 1
        match_idx = _find_match(cit, doi_index, title_index)

        if match_idx is not None:
            duplicate_pairs.append((merged[match_idx].title, cit.title))
            logger.debug(
                "Duplicate %r (%s) matches %r",
                cit.title,
                cit.source_label or "unlabelled",
                merged[match_idx].title,
            )
        else:
            _index(cit, len(merged), doi_index, title_index)
            merged.append(cit)

    stats = {
        "existing_total": len(existing),
        "new_total": new_total,
        "duplicates_found": len(duplicate_pairs),
        "unique_total": len(merged),
    }

    logger.info(
        "Merge: %d existing + %d new → %d unique (%d duplicates removed)",
        stats["existing_total"],
        stats["new_total"],
        stats["unique_total"],
        stats["duplicates_found"],
    )

    return MergeResult(
        citations=merged,
        duplicate_count=len(duplicate_pairs),
        duplicate_pairs=duplicate_pairs,
        stats=stats,
    )


def is_duplicate(a: CitationRecord, b: CitationRecord) -> bool:
    """True when both carry the same DOI or their titles normalize equal.

    Pairwise form of the rule ``merge_citations`` applies; both go through
    ``_index`` and ``_find_match``.
    """
    doi_index: dict[str, int] = {}
    title_index: dict[str, int] = {}
    _index(b, 0, doi_index, title_index)
    return _find_match(a, doi_index, title_index) is not None


# ── Matching ─────────────────────────────────────────────────────────


def _find_match(
    cit: CitationRecord,
    doi_index: dict[str, int],
    title_index: dict[str, int],
) -> int | None:
    """Index of the kept citation ``cit`` duplicates, or None."""
    doi = _doi_key(cit)
    if doi is not None and doi in doi_index:
        return doi_index[doi]

    title = _title_key(cit)
    if title in title_index:
        return title_index[title]

    return None


def _index(
    cit: CitationRecord,
    idx: int,
    doi_index: dict[str, int],
    title_index: dict[str, int],
) -> None:
    doi = _doi_key(cit)
    if doi is not None:
        doi_index.setdefault(doi, idx)
    title_index.setdefault(_title_key(cit), idx)


# ── Helpers ──────────────────────────────────────────────────────────


def _doi_key(cit: CitationRecord) -> Optional[str]:
    return cit.doi if cit.doi != NOT_AVAILABLE else None


def _title_key(cit: CitationRecord) -> str:
    return normalize_title(cit.title)
