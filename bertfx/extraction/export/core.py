# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
JSON export of extraction output.

Results, Examples and SequenceExamples all know how to turn themselves into
plain dicts. This module writes a list of them as one JSON array, going
through atomic_write so an interrupted batch never leaves a truncated file.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

from bertfx.logging.logger import get_logger
from bertfx.utils.filesystem import atomic_write

logger: logging.Logger = get_logger(__name__)


class SupportsToDict(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


def to_json(items: Iterable[SupportsToDict], indent: int | None = 2) -> str:
    return json.dumps([item.to_dict() for item in items], indent=indent)


def write_json(items: Iterable[SupportsToDict], output_path: Path, indent: int | None = 2) -> int:
    """
    Serialize items as a JSON array and write them atomically.

    Returns:
        The number of items written.
    """
    records = [item.to_dict() for item in items]
    atomic_write(output_path, json.dumps(records, indent=indent) + "\n")
    logger.info("Extraction output written", extra={"path": str(output_path), "records": len(records)})
    return len(records)
