"""
CLI interface for petlens
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from .config import load_settings
from .resolver import prepare_image_url
from .service import PetLens
from .validators import ACCEPTED_FILE_TYPES

logger = logging.getLogger("petlens.cli")


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser"""
    parser = argparse.ArgumentParser(
        description="Classify an image (local file or pasted URL/snippet) as Cat, Dog or Unknown"
    )

    parser.add_argument(
        "input",
        help=(
            f"Image file ({ACCEPTED_FILE_TYPES}), image URL, redirect link "
            "or HTML/Markdown/JSON snippet"
        )
    )

    parser.add_argument(
        "--resolve-only",
        action="store_true",
        help="Only resolve the input to a direct image URL; do not fetch or classify"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON"
    )

    parser.add_argument(
        "--model",
        help="Path to the classifier model (overrides PETLENS_MODEL_PATH)"
    )

    parser.add_argument(
        "--config",
        help="YAML settings file (default: petlens.yaml if present)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    source = args.input.strip()

    try:
        if args.resolve_only:
            exit_code = _run_resolve(source, as_json=args.json)
        else:
            exit_code = _run_classify(args, source)
    except Exception as exc:
        if args.verbose:
            raise
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


def _run_resolve(source: str, as_json: bool) -> int:
    prepared = prepare_image_url(source)
    if as_json:
        print(json.dumps(
            {
                "ok": prepared.ok,
                "normalized_url": prepared.normalized_url,
                "extracted_from_wrapper": prepared.extracted_from_wrapper,
                "error": prepared.error_kind.value if prepared.error_kind else None,
                "message": prepared.message,
            },
            ensure_ascii=False,
        ))
    elif prepared.ok:
        print(prepared.normalized_url)
        if prepared.extracted_from_wrapper:
            print("(extracted from wrapper)", file=sys.stderr)
    else:
        print(f"Error: {prepared.message}", file=sys.stderr)
    return 0 if prepared.ok else 1


def _run_classify(args: argparse.Namespace, source: str) -> int:
    overrides = {"model_path": args.model} if args.model else {}
    settings = load_settings(yaml_file=args.config, **overrides)
    service = PetLens(settings=settings)

    if _looks_like_local_file(source):
        logger.debug("Classifying local file %s", source)
        outcome = service.classify_upload(source)
    else:
        logger.debug("Classifying URL input %s", source[:200])
        outcome = service.classify_url(source)

    if args.json:
        print(json.dumps(outcome.to_dict(), ensure_ascii=False))
    elif outcome.ok:
        if outcome.resolved_url:
            print(f"Image: {outcome.resolved_url}")
        print(f"Prediction: {outcome.prediction}")
    else:
        print(f"Error: {outcome.error.message}", file=sys.stderr)
    return 0 if outcome.ok else 1


def _looks_like_local_file(value: str) -> bool:
    if value.startswith(("http://", "https://", "//", "www.")):
        return False
    try:
        return Path(value).expanduser().is_file()
    except (OSError, ValueError):
        return False


if __name__ == "__main__":
    main()
