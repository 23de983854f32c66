"""
Integration helpers: generate builders for live classes and source text.

This is the layer that decides how diagnostics surface: as returned
GenerationResults, or as a raised BuilderDiagnosticError when a builder
is executed.
"""

import dataclasses
from typing import Any, Dict, Optional, Union

from .codegen.core.generator import BuilderGenerator, GenerationResult, generate_builder
from .codegen.core.config import GeneratorConfig, load_config
from .frontend import describe_class, parse_source
from .logging_config import get_logger

logger = get_logger(__name__)


def _resolve_config(
    config: Optional[Union[GeneratorConfig, Dict[str, Any]]],
) -> GeneratorConfig:
    if isinstance(config, GeneratorConfig):
        return config
    return load_config(config)


def generate_from_class(
    record_cls: type, config: Optional[Union[GeneratorConfig, Dict[str, Any]]] = None
) -> GenerationResult:
    """
    Generate builder source for a live class.

    Args:
        record_cls: Record class, typically a dataclass
        config: Generator configuration or overrides dict

    Returns:
        GenerationResult with builder source and metadata
    """
    return generate_builder(describe_class(record_cls), _resolve_config(config))


def generate_from_source(
    source: str,
    filename: str = "<string>",
    config: Optional[Union[GeneratorConfig, Dict[str, Any]]] = None,
) -> Dict[str, GenerationResult]:
    """
    Generate builders for every top-level class of a module's source.

    Returns:
        Mapping of class name to GenerationResult, in source order
    """
    generator = BuilderGenerator(_resolve_config(config))
    return {
        definition.name: generator.generate(definition)
        for definition in parse_source(source, filename)
    }


def materialize_builder(
    record_cls: type, config: Optional[Union[GeneratorConfig, Dict[str, Any]]] = None
) -> type:
    """
    Generate and execute the builder for a live class.

    Returns:
        The builder class

    Raises:
        BuilderDiagnosticError: If generation produced diagnostics; the
            error points at the offending definition or annotation
    """
    # The record is injected into the namespace, never imported
    resolved = dataclasses.replace(_resolve_config(config), record_module=None)
    result = generate_from_class(record_cls, resolved)

    namespace = {"__name__": record_cls.__module__, record_cls.__name__: record_cls}
    filename = f"<{record_cls.__qualname__} builder>"
    exec(compile(result.code, filename, "exec"), namespace)

    builder_cls = namespace[result.metadata["builder_name"]]
    builder_cls.__module__ = record_cls.__module__
    builder_cls.__qualname__ = f"{record_cls.__qualname__}{resolved.builder_suffix}"
    logger.debug("Materialized %s", builder_cls.__qualname__)
    return builder_cls


def with_builder(record_cls: type = None, *, config=None):
    """
    Class decorator attaching a generated builder as ``record_cls.builder``.

    Usage::

        @with_builder
        @dataclass
        class Command:
            executable: str
            args: list[str] = field(metadata={"builder": {"each": "arg"}})

        Command.builder().executable("cargo").arg("build").build()
    """

    def decorate(cls: type) -> type:
        if "builder" in vars(cls):
            raise TypeError(f"{cls.__name__} already defines 'builder'")
        cls.builder = materialize_builder(cls, config)
        return cls

    if record_cls is None:
        return decorate
    return decorate(record_cls)


__all__ = [
    "generate_from_class",
    "generate_from_source",
    "materialize_builder",
    "with_builder",
]
