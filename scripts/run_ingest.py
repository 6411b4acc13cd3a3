#!/usr/bin/env python3
"""Import exported citation libraries and merge them into one collection."""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from citekit.core.collection import load_collection, save_collection
from citekit.core.ingest_spec import IngestSpec, SourceFile, load_ingest_spec
from citekit.merge.dedup import merge_citations
from citekit.parsers import parse_batch

logger = logging.getLogger("ingest")


# ── Ingest ───────────────────────────────────────────────────────────


def run_ingest(spec: IngestSpec) -> dict:
    """Parse every source, merge into the existing collection, write output.

    Returns a summary dict. ``parsed`` is 0 when no source yielded a record;
    the output file is not written in that case.
    """
    t_start = time.time()
    logger.info("Ingest run: %s (sources %s)", spec.name, spec.sources_hash()[:12])

    existing = load_collection(spec.existing) if spec.existing else []

    parsed = []
    per_source = {}
    for batch in spec.build_batches():
        records = parse_batch(batch)
        per_source[batch.label] = len(records)
        parsed.extend(records)

    if not parsed:
        logger.error("No citations found in %d source(s)", len(spec.sources))
        return {"parsed": 0, "per_source": per_source, "written": None}

    result = merge_citations(parsed, existing)
    written = save_collection(result.citations, spec.output)

    elapsed = time.time() - t_start
    logger.info("=" * 60)
    logger.info("INGEST COMPLETE in %.1fs", elapsed)
    logger.info("Merge stats: %s", json.dumps(result.stats, indent=2))

    return {
        "parsed": len(parsed),
        "per_source": per_source,
        "duplicates": result.duplicate_count,
        "unique": len(result.citations),
        "written": str(written),
        "elapsed": elapsed,
    }


def _spec_from_args(args: argparse.Namespace) -> IngestSpec:
    if args.spec:
        return load_ingest_spec(args.spec)
    if not args.files or not args.output:
        raise SystemExit("Either --spec or FILES with --output is required")
    return IngestSpec(
        name=args.name,
        sources=[SourceFile(path=Path(p), format=args.format) for p in args.files],
        existing=Path(args.existing) if args.existing else None,
        output=Path(args.output),
    )


# ── CLI ──────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(description="Import and deduplicate citation exports")
    parser.add_argument("files", nargs="*", help="Medline (.nbib) or RIS (.ris) files")
    parser.add_argument("--spec", default=None, help="Path to Ingest Spec YAML file")
    parser.add_argument("--name", default="adhoc", help="Run name for logging")
    parser.add_argument(
        "--format",
        choices=("medline", "ris"),
        default=None,
        help="Force a format instead of detecting it per file",
    )
    parser.add_argument("--existing", default=None, help="Existing collection JSON to merge into")
    parser.add_argument("--output", default=None, help="Where to write the merged collection JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log dropped records")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    summary = run_ingest(_spec_from_args(args))
    if not summary["parsed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
