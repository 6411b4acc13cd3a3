"""Shared data models for citation parsers."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NOT_AVAILABLE = "N/A"
NO_ABSTRACT = "No abstract available"
UNKNOWN_JOURNAL = "Unknown journal"
UNKNOWN_AUTHORS = "Unknown"

MAX_AUTHORS = 5
AUTHOR_SEPARATOR = "; "

CitationFormat = Literal["medline", "ris"]


class CitationRecord(BaseModel):
    """A single citation parsed from an exported reference library."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    identifier: str = NOT_AVAILABLE
    title: str = Field(min_length=1)
    abstract: str = NO_ABSTRACT
    journal: str = UNKNOWN_JOURNAL
    doi: str = NOT_AVAILABLE
    authors: str = UNKNOWN_AUTHORS
    source_label: Optional[str] = None
    source_format: CitationFormat

    @field_validator("doi")
    @classmethod
    def doi_shape(cls, v: str) -> str:
        if v != NOT_AVAILABLE and not v.startswith("10."):
            raise ValueError(f"DOI must start with '10.' or be {NOT_AVAILABLE!r}: {v!r}")
        return v


class SourceBatch(BaseModel):
    """Raw exported text from one source, awaiting parsing."""

    raw_text: str
    label: Optional[str] = None
    format: CitationFormat
