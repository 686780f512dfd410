#!/usr/bin/env python3
"""
Command-line access to the compliance engine and reconciler.

Usage:
    python -m doc_compliance.cli evaluate --type invoice invoice.txt
    python -m doc_compliance.cli reconcile invoice.json boe.json
    python -m doc_compliance.cli track --invoice JOB_ID --reference JOB_ID

evaluate reads extracted text (or a JSON document with "extractedText" and
"entities"); reconcile reads two structuredFields JSON payloads.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .core.errors import DocumentProcessingError
from .core.logging import setup_logging
from .models.entities import Entity
from .models.reconciliation import DocumentExtraction
from .services.pipeline import DocumentCompliancePipeline
from .services.reconciler import reconcile_documents
from .services.rule_engine import create_rule_engine
from .services.status_provider import HttpStatusProvider
from .services.suggestions import annotate


def _load_document(path: Path) -> tuple[str, list[Entity]]:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() != ".json":
        return raw, []
    data = json.loads(raw)
    document = data.get("document", data)
    entities = [Entity.model_validate(e) for e in document.get("entities") or []]
    return document.get("extractedText") or "", entities


def _load_fields(path: Path) -> DocumentExtraction:
    data = json.loads(path.read_text(encoding="utf-8"))
    fields = data.get("structuredFields", data)
    return DocumentExtraction.from_structured_fields(fields)


def cmd_evaluate(args) -> int:
    text, entities = _load_document(Path(args.file))
    compliance = create_rule_engine(pass_threshold=args.threshold).evaluate(args.type, text, entities)
    annotation = annotate(text, args.type, entities, compliance)
    print(json.dumps({"compliance": compliance.to_report(), **annotation.to_report()}, indent=2))
    return 0 if compliance.is_valid else 1


def cmd_reconcile(args) -> int:
    comparison = reconcile_documents(_load_fields(Path(args.invoice)), _load_fields(Path(args.reference)))
    print(json.dumps(comparison.to_report(), indent=2))
    return 0 if comparison.overall_status.value == "passed" else 1


def cmd_track(args) -> int:
    pipeline = DocumentCompliancePipeline(HttpStatusProvider(base_url=args.api_url))

    def progress(job, snapshot):
        print(f"{job.id}: {snapshot.status.value}", file=sys.stderr)

    try:
        if args.reference:
            report = asyncio.run(pipeline.reconcile_jobs(args.invoice, args.reference, progress))
        else:
            report = asyncio.run(pipeline.analyze_document(args.invoice, args.type, progress))
    except DocumentProcessingError as e:
        print(f"Processing failed: {e}", file=sys.stderr)
        return 2
    print(json.dumps(report.to_report(), indent=2))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Document compliance checks")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("evaluate", help="Evaluate one extracted document")
    p.add_argument("file", help="Extracted text (.txt) or document JSON")
    p.add_argument("--type", default="other", help="Document type (invoice, boe, packing_list, ...)")
    p.add_argument("--threshold", type=int, default=None, help="Pass threshold (default: COMPLIANCE_PASS_THRESHOLD)")
    p.set_defaults(func=cmd_evaluate)

    p = sub.add_parser("reconcile", help="Reconcile invoice and Bill of Entry fields")
    p.add_argument("invoice", help="Invoice structuredFields JSON")
    p.add_argument("reference", help="Bill of Entry structuredFields JSON")
    p.set_defaults(func=cmd_reconcile)

    p = sub.add_parser("track", help="Track processing jobs on the document backend")
    p.add_argument("--invoice", required=True, help="Invoice (or single document) job ID")
    p.add_argument("--reference", default=None, help="Bill of Entry job ID (enables reconciliation)")
    p.add_argument("--type", default="auto", help="Document type for single-document analysis")
    p.add_argument("--api-url", default=None, help="Document backend base URL")
    p.set_defaults(func=cmd_track)

    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
