# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for bertfx.

This handles the one-time setup that happens before any model is loaded:
  1. Validate the environment (Python version)
  2. Bring every bertfx logger to the configured level and log file
  3. Log a startup record with the system facts

Every CLI command goes through this before doing anything else.
"""

from pathlib import Path

from bertfx.config.schema import GlobalConfig
from bertfx.logging.logger import get_logger, set_package_log_file, set_package_log_level
from bertfx.runtime.environment import check_minimum_python, get_system_info


def bootstrap(config: GlobalConfig) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated global configuration.
    """
    check_minimum_python()

    set_package_log_level(config.log_level)
    if config.log_file is not None:
        set_package_log_file(Path(config.log_file))
    logger = get_logger("bertfx.runtime", log_level=config.log_level)

    system_info = get_system_info()
    logger.info(
        "bertfx bootstrap complete",
        extra={
            "project": config.project_name,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
        },
    )
