"""Tests for generating builders from live classes and module source."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generic, Optional, TypeVar

import pytest

from fluent_builder import (
    BuilderDiagnosticError,
    GeneratorConfig,
    UninitializedFieldError,
    generate_from_class,
    generate_from_source,
    materialize_builder,
    with_builder,
)

T = TypeVar("T")


@with_builder
@dataclass
class Request:
    url: str
    headers: list[str] = field(default_factory=list, metadata={"builder": {"each": "header"}})
    timeout: Optional[float] = None


@dataclass
class BadAccumulator:
    name: str
    tags: dict[str, str] = field(default_factory=dict, metadata={"builder": {"each": "tag"}})


@dataclass
class GenericHolder(Generic[T]):
    item: T


class Mode(enum.Enum):
    FAST = 1


def test_decorated_record() -> None:
    request = Request.builder().url("https://example.org").header("A: 1").header("B: 2").build()

    assert request == Request("https://example.org", ["A: 1", "B: 2"], None)
    assert Request.builder.__qualname__ == "RequestBuilder"
    assert Request.builder.__module__ == Request.__module__


def test_command_scenario(command_cls) -> None:
    builder_cls = materialize_builder(command_cls)

    command = (
        builder_cls()
        .executable("cargo")
        .arg("build")
        .arg("--release")
        .env([])
        .current_dir("..")
        .build()
    )

    assert command == command_cls("cargo", ["build", "--release"], [], "..")
    with pytest.raises(UninitializedFieldError, match="executable"):
        builder_cls().arg("build").env([]).current_dir("..").build()


def test_decorator_with_config() -> None:
    @with_builder(config={"builder_suffix": "Factory"})
    @dataclass
    class Point:
        x: int
        y: int

    assert Point.builder.__name__ == "PointFactory"
    assert Point.builder().x(1).y(2).build() == Point(1, 2)


def test_decorator_refuses_to_shadow_builder() -> None:
    @dataclass
    class HasBuilder:
        x: int

        @classmethod
        def builder(cls):
            return None

    with pytest.raises(TypeError, match="already defines 'builder'"):
        with_builder(HasBuilder)


def test_diagnostics_point_at_the_annotation() -> None:
    text = Path(__file__).read_text(encoding="utf-8")
    line = next(
        number
        for number, source_line in enumerate(text.splitlines(), start=1)
        if "tags: dict[str, str] = field(" in source_line
    )
    column = text.splitlines()[line - 1].index('"each"')

    with pytest.raises(BuilderDiagnosticError) as excinfo:
        materialize_builder(BadAccumulator)

    error = excinfo.value
    assert Path(error.filename).name == "test_integration.py"
    assert (error.lineno, error.offset) == (line, column + 1)
    assert error.diagnostics[0].field_name == "tags"
    assert "cannot be accumulated" in error.msg


@pytest.mark.parametrize(
    "record_cls, message",
    [
        (GenericHolder, "generic records are not supported"),
        (Mode, "is a variant definition"),
    ],
)
def test_definition_level_diagnostics(record_cls, message) -> None:
    with pytest.raises(BuilderDiagnosticError, match=message):
        materialize_builder(record_cls)


def test_generate_from_class_does_not_raise() -> None:
    result = generate_from_class(BadAccumulator, GeneratorConfig(record_module="app.models"))

    assert not result.success
    assert "from app.models import BadAccumulator" in result.code
    assert result.metadata["rejected_fields"] == ["tags"]


def test_generate_from_source() -> None:
    source = (
        "from dataclasses import dataclass\n"
        "\n"
        "@dataclass\n"
        "class Item:\n"
        "    sku: str\n"
        "\n"
        "class Pair(tuple):\n"
        "    pass\n"
    )

    results = generate_from_source(source, "shop.py")

    assert list(results) == ["Item", "Pair"]
    assert results["Item"].success
    assert not results["Pair"].success
    assert results["Pair"].diagnostics[0].file == "shop.py"
    assert results["Pair"].diagnostics[0].line == 7


def test_generate_from_source_with_annotated_metadata() -> None:
    source = (
        "from dataclasses import dataclass\n"
        "from typing import Annotated\n"
        "\n"
        "@dataclass\n"
        "class Account:\n"
        "    owner: str\n"
        "    balance: Annotated[int, Field(gt=0)]\n"
    )

    result = generate_from_source(source, "accounts.py")["Account"]

    assert result.success
    assert result.metadata["rejected_fields"] == []
    assert "def balance(self, value: Annotated[int, Field(gt=0)])" in result.code
