"""Command-line tool for running claim verification on a page of text."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[4]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.shared.utils.env import load_env
from src.shared.utils.logging import get_logger, setup_logging

from src.functions.claim_verification.core.contracts import AnalysisResult
from src.functions.claim_verification.core.factory import request_from_payload
from src.functions.claim_verification.core.pipeline import PipelineError
from src.functions.claim_verification.core.service import ClaimVerificationService

LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract claims from page text and check them against news coverage.",
    )

    source_group = parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument(
        "--text-file",
        type=Path,
        help="Plain text file containing the page text.",
    )
    source_group.add_argument(
        "--text",
        help="Inline page text.",
    )

    parser.add_argument("--title", help="Optional page title (logged only).")
    parser.add_argument("--url", help="Optional page URL (logged only).")
    parser.add_argument(
        "--max-claims",
        type=int,
        help="Maximum number of claims to verify (1-15, default 10).",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Print pipeline events as JSON lines while the analysis runs.",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip remote search and NLI; use synthetic sources and the heuristic scorer.",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Optional .env file to load before running.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level for the CLI (default: WARNING).",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level)
    if args.env_file:
        load_env(str(args.env_file))
    else:
        load_env()

    try:
        payload = _assemble_payload(args)
        request = request_from_payload(payload)
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    service = ClaimVerificationService(request)
    indent = 2 if args.pretty else None

    try:
        if args.stream:
            return asyncio.run(_print_stream(service, indent))
        result: AnalysisResult = asyncio.run(service.analyze())
    except PipelineError as exc:
        LOGGER.error("Analysis failed: %s", exc)
        print(json.dumps({"status": "error", "message": str(exc)}, indent=indent))
        return 1

    print(json.dumps(result.to_dict(), indent=indent, ensure_ascii=False))
    return 0


def _assemble_payload(args: argparse.Namespace) -> Dict[str, Any]:
    text = args.text if args.text is not None else args.text_file.read_text(encoding="utf-8")
    options: Dict[str, Any] = {"offline": args.offline}
    if args.max_claims is not None:
        options["max_claims"] = args.max_claims
    return {"text": text, "title": args.title, "url": args.url, "options": options}


async def _print_stream(service: ClaimVerificationService, indent: Optional[int]) -> int:
    exit_code = 0
    async for event in service.analyze_events():
        print(json.dumps(event.to_dict(), indent=indent, ensure_ascii=False), flush=True)
        if event.kind.value == "error":
            exit_code = 1
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
