"""Format detection and per-batch parser dispatch."""

import logging
import re
from pathlib import PurePath
from typing import Optional

from citekit.parsers.medline import parse_medline
from citekit.parsers.models import CitationFormat, CitationRecord, SourceBatch
from citekit.parsers.ris import parse_ris

logger = logging.getLogger(__name__)

__all__ = ["detect_format", "parse_batch", "parse_medline", "parse_ris"]

_EXTENSIONS: dict[str, CitationFormat] = {
    ".nbib": "medline",
    ".medline": "medline",
    ".ris": "ris",
}
_RIS_END_RE = re.compile(r"^ER\s*-", re.MULTILINE)


def detect_format(
    name: Optional[str] = None, text: Optional[str] = None
) -> CitationFormat:
    """Pick the parser for a file name or, failing that, for pasted text.

    Known extensions win. Text containing an ``ER  -`` sentinel line is RIS;
    any other text is treated as Medline.
    """
    if name:
        suffix = PurePath(name).suffix.lower()
        if suffix in _EXTENSIONS:
            return _EXTENSIONS[suffix]

    if text is not None:
        return "ris" if _RIS_END_RE.search(text) else "medline"

    raise ValueError(
        f"Cannot detect citation format for {name!r} "
        f"(expected one of {', '.join(sorted(_EXTENSIONS))})"
    )


def parse_batch(batch: SourceBatch) -> list[CitationRecord]:
    """Parse one batch with the parser for its format."""
    if batch.format == "medline":
        return parse_medline(batch.raw_text, batch.label)
    if batch.format == "ris":
        return parse_ris(batch.raw_text, batch.label)
    raise ValueError(f"Unsupported citation format: {batch.format!r}")
