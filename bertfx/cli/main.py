# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for bertfx.

This is the single root command, every operation is a subcommand of
`bertfx`. The global options (--config, --log-level) are inherited by every
subcommand through argparse's parent parser mechanism.

Usage:
    bertfx extract --config bertfx.yaml --input docs.txt --output features.json
    bertfx extract --config bertfx.yaml --text "hello world" --output out.json --format sequence
    bertfx tokenize --config bertfx.yaml --input docs.txt --output tokens.json
    bertfx inspect --config bertfx.yaml
"""

import argparse
import sys

from bertfx.cli.commands import handle_extract, handle_inspect, handle_tokenize
from bertfx.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False so the help text doesn't collide between the parent and
    the subcommand parsers.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (overrides the config file).",
    )
    return parent


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Text file with one document per line.",
    )
    parser.add_argument(
        "--text",
        type=str,
        default=None,
        help="A single document given inline (takes precedence over --input).",
    )


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    extract_parser = subparsers.add_parser(
        "extract",
        parents=[parent],
        help="Extract BERT features to a JSON file.",
    )
    _add_input_arguments(extract_parser)
    extract_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Where to write the JSON output.",
    )
    extract_parser.add_argument(
        "--format",
        type=str,
        default="example",
        choices=["raw", "example", "sequence"],
        help="raw encoder output, one pooled Example, or one Example per token.",
    )
    extract_parser.add_argument(
        "--label",
        type=str,
        default=None,
        help="Label for every pooled Example (example format only).",
    )
    extract_parser.set_defaults(func=handle_extract)

    tokenize_parser = subparsers.add_parser(
        "tokenize",
        parents=[parent],
        help="Tokenize text and report vocabulary coverage.",
    )
    _add_input_arguments(tokenize_parser)
    tokenize_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Optional JSON file for the tokens and ids.",
    )
    tokenize_parser.set_defaults(func=handle_tokenize)

    inspect_parser = subparsers.add_parser(
        "inspect",
        parents=[parent],
        help="Load and validate the tokenizer and encoder, then log their facts.",
    )
    inspect_parser.set_defaults(func=handle_inspect)


def main() -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="bertfx",
        description="bertfx: BERT feature extraction.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
