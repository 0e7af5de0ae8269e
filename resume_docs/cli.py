"""Command-line entry point: ``resume-docs generate | authorize | flatten``."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

import orjson

from .config import get_config
from .models.resume import ResumeData
from .services.google.auth import authorize_local_token
from .services.google.drive_service import SHARE_ROLES
from .services.pipeline.flattening import flatten_resume_data
from .services.pipeline.generation_service import ResumeGenerationService
from .utils.exceptions import PipelineError
from .utils.json import dumps_pretty
from .utils.logging import configure_logging


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="resume-docs", description="Generate resumes from a Google Docs template")
    parser.add_argument("--env", default=None, help="Config name (development, testing, production)")
    parser.add_argument("--log-level", default=None, help="Override RESUME_DOCS_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Copy the template and fill it with resume data")
    generate.add_argument("--data", required=True, type=Path, help="Resume JSON file")
    generate.add_argument("--template", default=None, help="Template document id (default from config)")
    generate.add_argument("--title", default=None, help="Title of the new document")
    generate.add_argument("--share", default=None, help="Email address to share the document with")
    generate.add_argument("--role", default=None, choices=SHARE_ROLES, help="Permission for --share")
    generate.add_argument("--report", action="store_true", help="Print the per-stage report as JSON")

    authorize = subparsers.add_parser("authorize", help="Run the local OAuth flow and save token.json")
    authorize.add_argument("--no-browser", action="store_true", help="Print the consent URL instead of opening it")
    authorize.add_argument("--port", type=int, default=0, help="Local redirect port (default: any free port)")

    flatten = subparsers.add_parser("flatten", help="Print the template slot values for resume data")
    flatten.add_argument("--data", required=True, type=Path, help="Resume JSON file")

    return parser.parse_args(argv)


def load_record(path: Path) -> ResumeData:
    try:
        payload = orjson.loads(path.read_bytes())
    except OSError as exc:
        raise PipelineError(f"Cannot read {path}: {exc}") from exc
    except orjson.JSONDecodeError as exc:
        raise PipelineError(f"Invalid JSON in {path}: {exc}") from exc
    return ResumeData.from_dict(payload)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    config = get_config(args.env)
    configure_logging(level=args.log_level or config.LOG_LEVEL, log_file=config.LOG_FILE or None)

    if args.command == "authorize":
        try:
            token_path = authorize_local_token(config, open_browser=not args.no_browser, port=args.port)
        except PipelineError as exc:
            print(f"Authorization failed: {exc}", file=sys.stderr)
            return 1
        print(f"Token saved to {token_path}")
        return 0

    try:
        record = load_record(args.data)
    except PipelineError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if args.command == "flatten":
        print(dumps_pretty(flatten_resume_data(record)))
        return 0

    outcome = ResumeGenerationService(config).generate(
        record,
        template_id=args.template,
        title=args.title,
        share_with=args.share,
        role=args.role,
    )
    if args.report:
        print(dumps_pretty(outcome.to_dict()))
    if not outcome.success:
        print(f"Generation failed: {outcome.error}", file=sys.stderr)
        return 1
    print(outcome.document_url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
