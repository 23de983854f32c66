"""Tests for the support module imported by generated builders."""

from __future__ import annotations

import copy
import logging
import pickle
from pathlib import Path

from fluent_builder.logging_config import configure_logging, get_logger
from fluent_builder.runtime import (
    UNSET,
    BuildOutcome,
    BuildValidationError,
    UninitializedFieldError,
)


def test_unset_is_a_singleton() -> None:
    assert copy.copy(UNSET) is UNSET
    assert copy.deepcopy(UNSET) is UNSET
    assert pickle.loads(pickle.dumps(UNSET)) is UNSET
    assert type(UNSET)() is UNSET


def test_uninitialized_field_error() -> None:
    error = UninitializedFieldError("executable", "Command")

    assert isinstance(error, BuildValidationError)
    assert isinstance(error, ValueError)
    assert error.field_name == "executable"
    assert error.record_name == "Command"
    assert str(error) == "`Command.executable` must be initialized"
    assert str(UninitializedFieldError("env")) == "`env` must be initialized"


def test_build_outcome() -> None:
    assert BuildOutcome("value", None).ok
    assert not BuildOutcome(None, UninitializedFieldError("x")).ok


def test_get_logger_namespaces_under_package() -> None:
    assert get_logger("cli").name == "fluent_builder.cli"
    assert get_logger("fluent_builder.frontend").name == "fluent_builder.frontend"
    assert get_logger().name == "fluent_builder"


def test_configure_logging_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "builder.log"

    root = configure_logging(verbose=True, log_file=log_file)
    get_logger("frontend").debug("parsed %d classes", 3)

    assert root.level == logging.DEBUG
    assert "parsed 3 classes" in log_file.read_text(encoding="utf-8")

    # Reconfiguring replaces handlers rather than stacking them
    configure_logging()
    assert len(root.handlers) == 1
    assert root.level == logging.INFO
