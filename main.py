"""CLI entry point for the HTML email importer.

Usage::

    python main.py input.html [-o output.json] [--profile path/to/overlay.yaml] \\
        [--indent 2] [-v]
"""

import argparse
import json
import logging
import sys
import os
from pathlib import Path

from html2design.converter import HtmlToDesignConverter
from html2design.mapper import EditorProfile
from html2design.parser import ConversionError

logger = logging.getLogger("html2design")


def _build_argument_parser() -> argparse.ArgumentParser:
    """Create and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="html2design",
        description="Convert an HTML email into a drag-and-drop editor design document.",
    )

    parser.add_argument(
        "input",
        help="Path to the input .html file.",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help=(
            "Path to the output .json file. "
            "Defaults to {input_stem}.design.json in the same directory."
        ),
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="Path to an editor profile YAML overlay.",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (0 for compact output).",
    )

    # Verbosity
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Enable verbose (DEBUG) logging output.",
    )

    return parser


def _setup_logging(verbose: bool) -> None:
    """Configure the root logger for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    handlers: list[logging.Handler] = [
        logging.StreamHandler(sys.stderr),
        logging.FileHandler(log_dir / "html2design.log", encoding="utf-8"),
    ]

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def _resolve_output_path(input_path: str, output_arg: str | None) -> str:
    """Determine the output file path.

    If *output_arg* is provided it is returned as-is.  Otherwise the output
    is placed alongside the input file as ``<stem>.design.json``.
    """
    if output_arg:
        return output_arg

    src = Path(input_path)
    return str(src.with_name(f"{src.stem}.design.json"))


def _print_summary(summary: dict) -> None:
    """Print a human-readable design summary to stdout."""
    print("\n--- Conversion Summary ---")
    print(f"  Rows    : {summary.get('rows', 0)}")
    print(f"  Columns : {summary.get('columns', 0)}")
    print(f"  Text    : {summary.get('text', 0)}")
    print(f"  Images  : {summary.get('image', 0)}")
    print(f"  Buttons : {summary.get('button', 0)}")
    print("--------------------------\n")


def main(argv: list[str] | None = None) -> None:
    """Run the HTML-to-design conversion."""
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    # -- Logging -----------------------------------------------------------
    _setup_logging(args.verbose)

    # -- Validate input ----------------------------------------------------
    input_path = args.input
    if not os.path.isfile(input_path):
        logger.error("Input file not found: %s", input_path)
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    output_path = _resolve_output_path(input_path, args.output)
    logger.info("Input : %s", input_path)
    logger.info("Output: %s", output_path)

    try:
        profile = EditorProfile(overlay_path=args.profile)
        converter = HtmlToDesignConverter(profile=profile)

        html = Path(input_path).read_text(encoding="utf-8", errors="replace")
        design = converter.convert(html)

        with open(output_path, "w", encoding="utf-8") as fh:
            json.dump(design.to_dict(), fh, indent=args.indent or None, ensure_ascii=False)

        # -- Summary -------------------------------------------------------
        _print_summary(design.summary())
        print(f"Design saved to: {output_path}")
        logger.info("Conversion complete: %s", output_path)

    except FileNotFoundError as exc:
        logger.error("File not found: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except ConversionError as exc:
        logger.error("Failed to import template: %s", exc)
        print(f"Error: Failed to import template: {exc}", file=sys.stderr)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        logger.exception("Unexpected error during conversion.")
        print(
            f"Error: An unexpected error occurred: {exc}\n"
            "Run with -v for detailed debug output.",
            file=sys.stderr,
        )
        sys.exit(2)


if __name__ == "__main__":
    main()
