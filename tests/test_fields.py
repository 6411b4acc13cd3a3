"""Tests for record assembly helpers and the CitationRecord model."""

import pytest
from pydantic import ValidationError

from citekit.parsers.fields import (
    as_is,
    before_first_period,
    build_citation,
    collect_fields,
    content_id,
    first_valid_doi,
    format_authors,
    joined,
    normalize_doi,
    resolve_chain,
    strip_annotations,
)
from citekit.parsers.models import (
    NO_ABSTRACT,
    NOT_AVAILABLE,
    UNKNOWN_AUTHORS,
    UNKNOWN_JOURNAL,
    CitationRecord,
)


# ── DOI ──────────────────────────────────────────────────────────────


def test_doi_annotation_stripped():
    assert normalize_doi("[doi] 10.1000/xyz") == "10.1000/xyz"
    assert normalize_doi("10.1000/xyz [doi]") == "10.1000/xyz"


def test_doi_without_prefix_rejected():
    assert normalize_doi("S0140-6736(20)30183-5 [pii]") == NOT_AVAILABLE
    assert normalize_doi("") == NOT_AVAILABLE
    assert normalize_doi("[doi]") == NOT_AVAILABLE


def test_doi_resolver_prefixes_removed():
    assert normalize_doi("https://doi.org/10.1/abc") == "10.1/abc"
    assert normalize_doi("http://dx.doi.org/10.1/abc") == "10.1/abc"
    assert normalize_doi("doi: 10.1/abc") == "10.1/abc"


def test_first_valid_doi():
    assert first_valid_doi(["123 [pii]", "10.5/a [doi]", "10.5/b"]) == "10.5/a"
    assert first_valid_doi([]) == NOT_AVAILABLE


def test_strip_annotations_collapses_whitespace():
    assert strip_annotations("  a  [x]   b [y] ") == "a b"


# ── Chains & Joining ─────────────────────────────────────────────────


def test_resolve_chain_short_circuits():
    fields = collect_fields([("B", "second"), ("A", "first")])
    chain = (("A", as_is), ("B", as_is))
    assert resolve_chain(fields, chain) == "first"


def test_resolve_chain_skips_empty_extraction():
    fields = collect_fields([("SO", ". 2020"), ("PL", "England")])
    chain = (("SO", before_first_period), ("PL", as_is))
    assert resolve_chain(fields, chain) == "England"


def test_resolve_chain_nothing_found():
    assert resolve_chain({}, (("JT", as_is),)) == ""


def test_joined_keeps_encounter_order():
    pairs = [("T1", "a"), ("TI", "b"), ("T1", "c"), ("AB", "x")]
    assert joined(pairs, "TI", "T1") == "a b c"


def test_before_first_period():
    assert before_first_period("J Surg Res. 2019;1:2.") == "J Surg Res"
    assert before_first_period("No period") == "No period"


# ── Authors ──────────────────────────────────────────────────────────


def test_format_authors_truncates_in_order():
    names = [f"Author {c}" for c in "ABCDEFGH"]
    assert format_authors(names) == "Author A; Author B; Author C; Author D; Author E"


def test_format_authors_empty():
    assert format_authors([]) == UNKNOWN_AUTHORS
    assert format_authors(["", "  "]) == UNKNOWN_AUTHORS


# ── Assembly ─────────────────────────────────────────────────────────


def test_build_citation_defaults():
    rec = build_citation(source_format="ris", title="  Only a title ")
    assert rec.title == "Only a title"
    assert rec.identifier == NOT_AVAILABLE
    assert rec.abstract == NO_ABSTRACT
    assert rec.journal == UNKNOWN_JOURNAL
    assert rec.authors == UNKNOWN_AUTHORS
    assert rec.doi == NOT_AVAILABLE
    assert rec.source_label is None


def test_build_citation_without_title():
    assert build_citation(source_format="medline", title="   ") is None


def test_build_citation_normalizes_raw_doi():
    rec = build_citation(source_format="ris", title="T", doi="not a doi")
    assert rec.doi == NOT_AVAILABLE


def test_content_id_stable_across_case_and_punctuation():
    assert content_id("COVID-19: A Review", "N/A") == content_id("covid19 a review", "N/A")
    assert content_id("Same", "10.1/a") != content_id("Same", "10.1/b")


def test_record_id_derived_from_content():
    a = build_citation(source_format="ris", title="Study X", doi="10.1/abc", source_label="a")
    b = build_citation(source_format="medline", title="Study X", doi="10.1/abc", source_label="b")
    assert a.record_id == b.record_id


# ── Model ────────────────────────────────────────────────────────────


def test_record_is_immutable():
    rec = build_citation(source_format="ris", title="T")
    with pytest.raises(ValidationError):
        rec.title = "Changed"


def test_model_rejects_bad_doi():
    with pytest.raises(ValidationError):
        CitationRecord(record_id="x", title="T", doi="abc", source_format="ris")


def test_model_rejects_empty_title():
    with pytest.raises(ValidationError):
        CitationRecord(record_id="x", title="", source_format="ris")
