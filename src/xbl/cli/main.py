"""Main CLI entry point for the ``xbl`` command-line tool.

Provides subcommands to inspect, validate and convert XBL files.
"""

import argparse
import json
import sys
import xml.etree.ElementTree as ET
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from xbl import __version__
from xbl.api.adapters import ElementTreeAdapter
from xbl.api.codec import DocumentCodec
from xbl.model.tree import Document, Element
from xbl.shared.config import CodecConfig, ConfigError, ValueEncoding
from xbl.shared.errors import XBLError
from xbl.shared.logging import configure_logging, get_logger

ENCODING_CHOICES = [member.name.lower() for member in ValueEncoding]

logger = get_logger(__name__, component="cli")


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.codec_config = CodecConfig()
        self.output_format = "text"
        self.verbose = False
        self.quiet = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds ``CodecConfig`` fields plus an optional
        ``output_format``. A missing file yields the defaults.

        Raises:
            ConfigError: If the file exists but is not a valid configuration
        """
        config = cls()
        if not config_path.exists():
            return config

        try:
            data = json.loads(config_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must hold a JSON object")

        config.output_format = data.pop("output_format", config.output_format)
        config.codec_config = CodecConfig.from_dict(data)
        return config

    def with_encoding(self, encoding: Optional[str]) -> CodecConfig:
        """Codec configuration with an optional value encoding override."""
        if encoding is None:
            return self.codec_config
        return replace(self.codec_config, value_encoding=ValueEncoding[encoding.upper()])


def printable(text: str) -> str:
    """Escape lone surrogates left by undecodable name bytes."""
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def render_tree(document: Document) -> str:
    """Render a document as an indented outline."""
    lines: List[str] = []
    pending: List[Tuple[Element, int]] = [(root, 0) for root in reversed(document.elements)]
    while pending:
        element, indent = pending.pop()
        pad = "  " * indent
        lines.append(f"{pad}<{printable(element.name)}>")
        for attribute in element.attributes:
            lines.append(
                f"{pad}  @{printable(attribute.name)}: "
                f"{attribute.value.type.display_name} = {attribute.value.to_python()!r}"
            )
        pending.extend((child, indent + 1) for child in reversed(element.children))
    return "\n".join(lines)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xbl",
        description="Inspect, validate and convert XBL binary tree documents"
    )

    parser.add_argument("--version", action="version", version=__version__)
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
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON CodecConfig)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Print the tree of an XBL file")
    inspect_parser.add_argument("path", type=Path, help="XBL file to inspect")
    inspect_parser.add_argument(
        "--encoding", "-e",
        choices=ENCODING_CHOICES,
        help="Value encoding of the file (default: from configuration)"
    )
    inspect_parser.add_argument(
        "--format", "-f",
        choices=["json", "text", "xml"],
        help="Output format (default: text)"
    )
    inspect_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Check that XBL files decode")
    validate_parser.add_argument("paths", nargs="+", type=Path, help="XBL files to validate")
    validate_parser.add_argument(
        "--encoding", "-e",
        choices=ENCODING_CHOICES,
        help="Value encoding of the files (default: from configuration)"
    )
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        help="Output format (default: text)"
    )

    # Convert command
    convert_parser = subparsers.add_parser(
        "convert", help="Re-encode an XBL file with another value encoding"
    )
    convert_parser.add_argument("source", type=Path, help="Input XBL file")
    convert_parser.add_argument("destination", type=Path, help="Output XBL file")
    convert_parser.add_argument(
        "--from-encoding", dest="from_encoding",
        choices=ENCODING_CHOICES,
        default="text",
        help="Value encoding of the input (default: text)"
    )
    convert_parser.add_argument(
        "--to-encoding", dest="to_encoding",
        choices=ENCODING_CHOICES,
        default="binary",
        help="Value encoding of the output (default: binary)"
    )

    return parser


def validate_file(codec: DocumentCodec, path: Path) -> Dict[str, Any]:
    """Decode one file and summarise the outcome."""
    try:
        document = codec.load(path)
    except XBLError as e:
        return {
            "file": str(path),
            "valid": False,
            "error_kind": e.kind.name,
            "error": str(e),
        }
    return {
        "file": str(path),
        "valid": True,
        "elements": document.element_count,
        "attributes": document.attribute_count,
    }


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format validation results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No results to display."

    valid_count = sum(1 for r in results if r["valid"])
    lines = [f"Validated {len(results)} files, {valid_count} valid", "-" * 50]
    for result in results:
        if result["valid"]:
            lines.append(
                f"OK   {result['file']} "
                f"({result['elements']} elements, {result['attributes']} attributes)"
            )
        else:
            lines.append(f"FAIL {result['file']}")
            lines.append(f"   {result['error_kind']}: {result['error']}")
    return "\n".join(lines)


def cmd_inspect(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle inspect command."""
    codec = DocumentCodec(config.with_encoding(args.encoding))
    try:
        document = codec.load(args.path)
    except XBLError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output_format = args.format or config.output_format
    if output_format == "json":
        payload = {
            "element_count": document.element_count,
            "attribute_count": document.attribute_count,
            "max_depth": document.max_depth,
            "elements": document.to_records(),
        }
        if codec.last_metrics is not None:
            payload["metrics"] = codec.last_metrics.to_dict()
        formatted = json.dumps(payload, indent=2)
    elif output_format == "xml":
        result = ElementTreeAdapter(codec.correlation_id).to_target(document)
        if not result.success:
            print(f"Error: {result.errors[0]}", file=sys.stderr)
            return 1
        try:
            ET.indent(result.converted_data)
            formatted = ET.tostring(result.converted_data, encoding="unicode")
        except RecursionError:
            # ElementTree serializes recursively
            print(
                f"Error: Document nesting depth {document.max_depth} "
                "is too deep for xml output",
                file=sys.stderr,
            )
            return 1
    else:
        formatted = render_tree(document)

    if args.output:
        try:
            args.output.write_text(formatted)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        if not config.quiet:
            print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(formatted)
    return 0


def cmd_validate(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle validate command."""
    codec = DocumentCodec(config.with_encoding(args.encoding))
    results = [validate_file(codec, path) for path in args.paths]
    print(format_results(results, args.format or config.output_format))
    return 0 if all(r["valid"] for r in results) else 1


def cmd_convert(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle convert command."""
    reader = DocumentCodec(config.with_encoding(args.from_encoding))
    writer = DocumentCodec(config.with_encoding(args.to_encoding))
    try:
        document = reader.load(args.source)
        writer.dump(document, args.destination)
    except XBLError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not config.quiet:
        print(
            f"Converted {args.source} ({args.from_encoding}) -> "
            f"{args.destination} ({args.to_encoding})",
            file=sys.stderr,
        )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    config.verbose = args.verbose
    config.quiet = args.quiet

    # Set up logging verbosity
    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")
    else:
        configure_logging(config.codec_config.global_.logging_level)

    logger.debug("Dispatching command", extra={"command": args.command})

    handlers = {
        "inspect": cmd_inspect,
        "validate": cmd_validate,
        "convert": cmd_convert,
    }
    try:
        return handlers[args.command](args, config)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
