"""Reading exported libraries and storing merged collections as JSON."""

import logging
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter

from citekit.parsers.models import CitationRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(list[CitationRecord])


def read_source(path: str | Path) -> str:
    """Read an exported library as text, tolerating a UTF-8 BOM."""
    return Path(path).read_text(encoding="utf-8-sig", errors="replace")


def load_collection(path: str | Path) -> list[CitationRecord]:
    """Load a merged collection; a missing file is an empty collection."""
    path = Path(path)
    if not path.exists():
        logger.info("No existing collection at %s, starting empty", path)
        return []
    records = _RECORDS.validate_json(path.read_bytes())
    logger.info("Loaded %d existing citations from %s", len(records), path)
    return records


def save_collection(records: Iterable[CitationRecord], path: str | Path) -> Path:
    """Write records as a JSON array, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    records = list(records)
    path.write_bytes(_RECORDS.dump_json(records, indent=2))
    logger.info("Wrote %d citations to %s", len(records), path)
    return path
