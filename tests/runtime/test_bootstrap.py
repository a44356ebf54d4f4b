# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for environment validation and the runtime bootstrap.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import numpy as np
import pytest
from pydantic import ValidationError

from bertfx.config.schema import GlobalConfig
from bertfx.logging.logger import get_logger, set_package_log_file, set_package_log_level
from bertfx.pooling.core import pool_mean
from bertfx.runtime import environment
from bertfx.runtime.bootstrap import bootstrap
from bertfx.runtime.environment import check_minimum_python, get_python_version, get_system_info


@pytest.fixture(autouse=True)
def _restore_package_level() -> Iterator[None]:
    yield
    set_package_log_level("INFO")
    set_package_log_file(None)


class TestEnvironmentValidation:
    def test_python_version_returns_tuple(self) -> None:
        version = get_python_version()
        assert isinstance(version, tuple)
        assert len(version) == 3
        assert all(isinstance(v, int) for v in version)

    def test_minimum_python_check_passes(self) -> None:
        """We're running this test, so Python must be >= 3.11."""
        check_minimum_python()

    def test_old_python_is_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(environment, "get_python_version", lambda: (3, 9, 18))
        with pytest.raises(RuntimeError, match="requires Python >= 3.11"):
            check_minimum_python()

    def test_system_info_has_all_fields(self) -> None:
        info = get_system_info()
        assert info.python_version
        assert info.platform
        assert info.architecture
        assert info.hostname is not None


class TestBootstrap:
    def test_bootstrap_completes_without_error(self) -> None:
        config = GlobalConfig(config_version="1.0.0", log_level="WARNING")
        bootstrap(config)

    def test_bootstrap_applies_level_to_existing_loggers(self) -> None:
        logger = get_logger("bertfx.test.bootstrap_level", log_level="DEBUG")
        try:
            bootstrap(GlobalConfig(config_version="1.0.0", log_level="ERROR"))
            assert logger.level == logging.ERROR
        finally:
            logger.handlers.clear()

    def test_unknown_level_never_reaches_bootstrap(self) -> None:
        with pytest.raises(ValidationError):
            GlobalConfig(config_version="1.0.0", log_level="LOUD")  # type: ignore[arg-type]


def _flush_package_handlers() -> None:
    for name in list(logging.Logger.manager.loggerDict):
        if name.startswith("bertfx"):
            for handler in logging.getLogger(name).handlers:
                handler.flush()


def _file_messages(log_file: Path) -> list[str]:
    _flush_package_handlers()
    lines = log_file.read_text(encoding="utf-8").splitlines()
    return [json.loads(line)["msg"] for line in lines if line.strip()]


class TestBootstrapLogFile:
    def test_module_loggers_write_to_configured_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "bertfx.log"
        bootstrap(GlobalConfig(config_version="1.0.0", log_level="INFO", log_file=str(log_file)))

        pool_mean(np.zeros((2, 3)), np.zeros(3), num_tokens=0)

        messages = _file_messages(log_file)
        assert "bertfx bootstrap complete" in messages
        assert any("MEAN pooling over an empty token sequence" in msg for msg in messages)

    def test_loggers_created_after_bootstrap_write_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "late.log"
        bootstrap(GlobalConfig(config_version="1.0.0", log_level="INFO", log_file=str(log_file)))

        late = get_logger("bertfx.test.late_logger", log_level="INFO")
        try:
            late.info("created after bootstrap")
            assert "created after bootstrap" in _file_messages(log_file)
        finally:
            late.handlers.clear()

    def test_repeated_bootstrap_does_not_duplicate_file_records(self, tmp_path: Path) -> None:
        log_file = tmp_path / "twice.log"
        config = GlobalConfig(config_version="1.0.0", log_level="INFO", log_file=str(log_file))
        bootstrap(config)
        bootstrap(config)

        assert _file_messages(log_file).count("bertfx bootstrap complete") == 2
