"""Tests for format detection and batch dispatch."""

import pytest
from pydantic import ValidationError

from citekit.parsers import detect_format, parse_batch
from citekit.parsers.models import SourceBatch


# ── Format Detection ─────────────────────────────────────────────────


@pytest.mark.parametrize(
    "name, expected",
    [
        ("pubmed-export.nbib", "medline"),
        ("SEARCH.NBIB", "medline"),
        ("results.medline", "medline"),
        ("scopus.ris", "ris"),
    ],
)
def test_detect_by_extension(name, expected):
    assert detect_format(name) == expected


def test_extension_beats_content():
    assert detect_format("odd.nbib", "TY  - JOUR\nER  - \n") == "medline"


def test_detect_ris_by_end_sentinel():
    assert detect_format(text="TY  - JOUR\nTI  - x\nER  - \n") == "ris"
    assert detect_format(text="TY - JOUR\nER -\n") == "ris"


def test_pasted_text_defaults_to_medline():
    assert detect_format("clipboard.txt", "PMID- 1\nTI  - x\n") == "medline"


def test_undetectable_without_text():
    with pytest.raises(ValueError, match="Cannot detect"):
        detect_format("notes.txt")


# ── Dispatch ─────────────────────────────────────────────────────────


def test_parse_batch_medline():
    batch = SourceBatch(raw_text="PMID- 1\nTI  - Hello\n", label="a", format="medline")
    records = parse_batch(batch)
    assert records[0].source_format == "medline"
    assert records[0].source_label == "a"


def test_parse_batch_ris():
    batch = SourceBatch(raw_text="TY  - JOUR\nTI  - Hello\nER  - \n", format="ris")
    records = parse_batch(batch)
    assert records[0].source_format == "ris"
    assert records[0].source_label is None


def test_unknown_format_rejected():
    with pytest.raises(ValidationError):
        SourceBatch(raw_text="", format="bibtex")
