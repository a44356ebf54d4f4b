# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the bertfx CLI.

Each function here corresponds to one subcommand and returns an exit code.
Heavy imports (the encoder runtimes) happen inside the handlers so that
`bertfx --help` stays fast.

No print() calls. Everything goes through the structured logger, and
results go to files.
"""

import argparse
import json
import logging
from pathlib import Path

from bertfx.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR, VALIDATION_ERROR
from bertfx.config.exceptions import ConfigError
from bertfx.config.loader import load_config
from bertfx.config.schema import BertFxConfig
from bertfx.logging.logger import get_logger, set_package_log_level
from bertfx.runtime.bootstrap import bootstrap


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, BertFxConfig | None, logging.Logger]:
    """
    The shared setup that every command needs: load config, run bootstrap.

    Every bertfx command needs a config, so a missing --config is a user
    error. Returns (exit_code, config, logger); if exit_code is not SUCCESS
    the caller should return it immediately.
    """
    logger = get_logger(f"bertfx.cli.{command_name}", log_level=args.log_level or "INFO")

    if args.config is None:
        logger.error("No config provided, use --config", extra={"command": command_name})
        return USER_ERROR, None, logger

    try:
        config = load_config(Path(args.config))
    except ConfigError as err:
        logger.error(
            "Configuration error",
            extra={"command": command_name, "error": str(err)},
        )
        return CONFIG_ERROR, None, logger

    bootstrap(config.global_config)
    # An explicit --log-level wins over the config file.
    if args.log_level is not None:
        set_package_log_level(args.log_level)

    return SUCCESS, config, logger


def _read_lines(args: argparse.Namespace, logger: logging.Logger) -> list[str] | None:
    """Documents from --text, or one per non-blank line of --input."""
    if getattr(args, "text", None):
        return [args.text]

    if not args.input:
        logger.error("No input provided, use --text or --input")
        return None

    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error("Input file not found", extra={"path": str(input_path)})
        return None

    return [line for line in input_path.read_text(encoding="utf-8").splitlines() if line.strip()]


def _check_documents(documents: list[str] | None, logger: logging.Logger) -> int:
    if documents is None:
        return USER_ERROR
    if not documents:
        logger.error("Input contains no documents")
        return VALIDATION_ERROR
    return SUCCESS


def handle_extract(args: argparse.Namespace) -> int:
    """Run every input document through the extractor and write JSON."""
    exit_code, config, logger = _load_and_bootstrap(args, "extract")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None

    documents = _read_lines(args, logger)
    exit_code = _check_documents(documents, logger)
    if exit_code != SUCCESS:
        return exit_code
    assert documents is not None
    if not args.output:
        logger.error("No output path provided, use --output")
        return USER_ERROR

    try:
        from bertfx.extraction.export.core import write_json
        from bertfx.extraction.loader.core import load_extractor

        with load_extractor(config, Path(args.config)) as extractor:
            if args.format == "raw":
                records = [extractor.run(text) for text in documents]
            elif args.format == "sequence":
                records = [extractor.extract_sequence(text) for text in documents]
            else:
                records = [extractor.extract(text, label=args.label) for text in documents]

            written = write_json(records, Path(args.output))
            logger.info(
                "Extraction complete",
                extra={"format": args.format, "documents": written, **extractor.metrics.summary()},
            )
        return SUCCESS

    except ConfigError as err:
        logger.error("Configuration error", extra={"error": str(err)})
        return CONFIG_ERROR
    except Exception as err:
        logger.error("Extraction failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_tokenize(args: argparse.Namespace) -> int:
    """Tokenize input documents, log coverage metrics, optionally write tokens as JSON."""
    exit_code, config, logger = _load_and_bootstrap(args, "tokenize")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None

    if config.tokenizer is None:
        logger.error("Config has no 'tokenizer' section", extra={"config": args.config})
        return CONFIG_ERROR

    documents = _read_lines(args, logger)
    exit_code = _check_documents(documents, logger)
    if exit_code != SUCCESS:
        return exit_code
    assert documents is not None

    try:
        from bertfx.config.loader import resolve_relative
        from bertfx.tokenizer.loader.core import load_tokenizer_config
        from bertfx.tokenizer.metrics.core import compute_metrics
        from bertfx.tokenizer.wordpiece.core import WordpieceTokenizer
        from bertfx.utils.filesystem import atomic_write

        tokenizer_config = load_tokenizer_config(
            resolve_relative(config.tokenizer.path, Path(args.config))
        )
        tokenizer = WordpieceTokenizer(tokenizer_config)

        metrics = compute_metrics(tokenizer, documents)
        logger.info("Tokenization complete", extra=metrics._asdict())

        if args.output:
            records = []
            for text in documents:
                tokens = tokenizer.tokenize(text)
                records.append(
                    {
                        "text": text,
                        "tokens": tokens,
                        "ids": tokenizer.convert_tokens_to_ids(tokens),
                    }
                )
            atomic_write(
                Path(args.output),
                json.dumps({"metrics": metrics._asdict(), "documents": records}, indent=2) + "\n",
            )
            logger.info("Tokens written", extra={"path": args.output, "documents": len(records)})
        return SUCCESS

    except ConfigError as err:
        logger.error("Configuration error", extra={"error": str(err)})
        return CONFIG_ERROR
    except Exception as err:
        logger.error("Tokenization failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_inspect(args: argparse.Namespace) -> int:
    """Load the tokenizer and encoder, validate them, and log what was found."""
    exit_code, config, logger = _load_and_bootstrap(args, "inspect")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None

    try:
        from bertfx import __version__
        from bertfx.extraction.loader.core import load_extractor

        with load_extractor(config, Path(args.config)) as extractor:
            names = extractor.feature_names
            logger.info(
                "Extractor info",
                extra={
                    "bertfx_version": __version__,
                    "backend": config.encoder.backend if config.encoder else None,
                    "vocab_size": len(extractor.vocab),
                    "dim": extractor.dim,
                    "max_length": extractor.max_length,
                    "pooling": extractor.pooling.value,
                    "first_feature": names[0],
                    "last_feature": names[-1],
                },
            )
        return SUCCESS

    except ConfigError as err:
        logger.error("Configuration error", extra={"error": str(err)})
        return CONFIG_ERROR
    except Exception as err:
        logger.error("Inspect failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR
