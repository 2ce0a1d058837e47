"""Main CLI entry point for the xml-node-tree command-line tool.

Provides commands to re-serialize documents, check them for well-formedness
and fetch documents over HTTP.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from xml_node_tree import __version__
from xml_node_tree.api import NodeTreeParser, parse
from xml_node_tree.loader import URLLoader
from xml_node_tree.shared import LoaderConfig, ParserConfig, SerializerConfig, get_logger
from xml_node_tree.tree import ParseResult

logger = get_logger(__name__, component="cli")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-node-tree",
        description="Parse XML and HTML documents into node trees and serialize them",
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Format command
    format_parser = subparsers.add_parser("format", help="Re-serialize documents")
    format_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Documents to format"
    )
    format_parser.add_argument(
        "--html",
        action="store_true",
        help="Parse leniently as HTML"
    )
    format_parser.add_argument(
        "--pretty", "-p",
        action="store_true",
        help="Indent the output"
    )
    format_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Spaces per indentation level (default: 2)"
    )
    format_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Check command
    check_parser = subparsers.add_parser("check", help="Check documents for well-formedness")
    check_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Documents to check"
    )
    check_parser.add_argument(
        "--html",
        action="store_true",
        help="Parse leniently as HTML"
    )
    check_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Fetch command
    fetch_parser = subparsers.add_parser("fetch", help="Load a document from a URL")
    fetch_parser.add_argument("url", help="URL to load")
    fetch_parser.add_argument(
        "--html",
        action="store_true",
        help="Parse leniently as HTML"
    )
    fetch_parser.add_argument(
        "--pretty", "-p",
        action="store_true",
        help="Indent the output"
    )
    fetch_parser.add_argument(
        "--post",
        metavar="BODY",
        help="POST a form-encoded body instead of GET"
    )
    fetch_parser.add_argument(
        "--timeout",
        type=float,
        default=LoaderConfig().timeout_seconds,
        help="Request timeout in seconds (default: 60)"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def render(result: ParseResult, pretty: bool, config: SerializerConfig) -> str:
    """Serialize the root of a successful parse."""
    root = result.unwrap()
    return root.pretty_xml(config) if pretty else root.xml(config)


def describe_result(path: Path, result: ParseResult) -> Dict[str, Any]:
    """Summarize a parse for the check command."""
    summary: Dict[str, Any] = {
        "file": str(path),
        "well_formed": result.success,
        "repairs": result.repair_count,
        "encoding": result.encoding,
    }
    if result.error is not None:
        summary["error"] = str(result.error)
    return summary


def cmd_format(args: argparse.Namespace) -> int:
    """Handle format command."""
    parser = NodeTreeParser(ParserConfig(html_mode=args.html))
    config = SerializerConfig(indent=" " * args.indent)
    outputs: List[str] = []
    failures = 0

    for path in args.paths:
        try:
            result = parser.parse_file(path)
        except OSError as e:
            print(f"Cannot read {path}: {e}", file=sys.stderr)
            failures += 1
            continue
        if not result.success:
            print(f"{path}: {result.error}", file=sys.stderr)
            failures += 1
            continue
        outputs.append(render(result, args.pretty, config))

    formatted_output = "\n".join(outputs)
    if args.output:
        try:
            args.output.write_text(formatted_output + "\n", encoding="utf-8")
            print(f"Output written to {args.output}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    elif outputs:
        print(formatted_output)

    return 0 if failures == 0 else 1


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    parser = NodeTreeParser(ParserConfig(html_mode=args.html))
    results = []

    for path in args.paths:
        try:
            result = parser.parse_file(path)
        except OSError as e:
            results.append({"file": str(path), "well_formed": False, "error": str(e)})
            continue
        results.append(describe_result(path, result))

    well_formed = sum(1 for r in results if r["well_formed"])
    if args.format == "json":
        print(json.dumps(results, indent=2))
    else:
        print(f"Checked {len(results)} files, {well_formed} well-formed")
        print("-" * 50)
        for result in results:
            status = "✓" if result["well_formed"] else "✗"
            print(f"{status} {result['file']}")
            if "error" in result:
                print(f"   Error: {result['error']}")
            elif result.get("repairs"):
                print(f"   Repairs: {result['repairs']}")

    return 0 if well_formed == len(results) else 1


def cmd_fetch(args: argparse.Namespace) -> int:
    """Handle fetch command."""
    with URLLoader(args.url, LoaderConfig(timeout_seconds=args.timeout)) as loader:
        future = loader.post(args.post) if args.post is not None else loader.get()
        try:
            load_result = future.result()
        except KeyboardInterrupt:
            loader.abort()
            raise

    if not load_result.success:
        print(f"Failed to load {args.url}: {load_result.error}", file=sys.stderr)
        return 1
    logger.debug(
        "Document loaded",
        extra={"url": args.url, "status_code": load_result.status_code},
    )

    result = parse(load_result.response_data, html_mode=args.html)
    if not result.success:
        print(f"{args.url}: {result.error}", file=sys.stderr)
        return 1
    print(render(result, args.pretty, SerializerConfig()))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "format":
            return cmd_format(args)
        elif args.command == "check":
            return cmd_check(args)
        elif args.command == "fetch":
            return cmd_fetch(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
