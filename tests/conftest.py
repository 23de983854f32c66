from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pytest

from fluent_builder.codegen.core import (
    Annotation,
    BuilderGenerator,
    RawDefinition,
    RawField,
    SourceLocation,
)


@dataclass
class Command:
    executable: str
    args: list[str] = field(metadata={"builder": {"each": "arg"}})
    env: list[str] = field(default_factory=list)
    current_dir: str = "."


class DefinitionFactory:
    """Builds raw definitions the way a front-end would report them."""

    def __init__(self, file: str = "models.py") -> None:
        self.file = file
        self._line = 1

    def _next_location(self, column: int = 4) -> SourceLocation:
        self._line += 1
        return SourceLocation(self.file, self._line, column)

    def field(
        self,
        name: str,
        type_: str,
        each: Any = None,
        *,
        annotations: Optional[list] = None,
    ) -> RawField:
        location = self._next_location()
        found = list(annotations or [])
        if each is not None:
            found.append(
                Annotation(
                    "builder",
                    "each",
                    each,
                    SourceLocation(self.file, location.line, 40),
                )
            )
        return RawField(name, type_, found, location)

    def record(self, name: str, *fields: RawField, **kwargs) -> RawDefinition:
        return RawDefinition(
            name=name,
            fields=list(fields),
            location=SourceLocation(self.file, 1, 0),
            **kwargs,
        )

    def command(self) -> RawDefinition:
        return self.record(
            "Command",
            self.field("executable", "str"),
            self.field("args", "list[str]", each="arg"),
            self.field("env", "list[str]"),
            self.field("current_dir", "str"),
        )


@pytest.fixture
def defs() -> DefinitionFactory:
    """Factory for raw record definitions located in ``models.py``."""
    return DefinitionFactory()


@pytest.fixture
def generator() -> BuilderGenerator:
    return BuilderGenerator()


@pytest.fixture
def command_cls() -> type:
    return Command


@pytest.fixture
def run_module():
    """Execute generated source with the given records in scope."""

    def run(code: str, filename: str = "<generated>", **records: type) -> Dict[str, Any]:
        namespace: Dict[str, Any] = {"__name__": "generated", **records}
        exec(compile(code, filename, "exec"), namespace)
        return namespace

    return run


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo handlers installed by configure_logging between tests."""
    yield
    logger = logging.getLogger("fluent_builder")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
