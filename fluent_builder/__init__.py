"""
fluent-builder: generate chainable builder classes for record types.

Quick start::

    from dataclasses import dataclass, field
    from fluent_builder import with_builder

    @with_builder
    @dataclass
    class Command:
        executable: str
        args: list[str] = field(metadata={"builder": {"each": "arg"}})

    Command.builder().executable("cargo").arg("build").build()
"""

from .codegen import (
    BuilderGenerator,
    GenerationResult,
    GeneratorConfig,
    RawDefinition,
    generate_builder,
    load_config,
)
from .integration import (
    generate_from_class,
    generate_from_source,
    materialize_builder,
    with_builder,
)
from .runtime import (
    UNSET,
    BuildOutcome,
    BuildValidationError,
    BuilderDiagnosticError,
    UninitializedFieldError,
)

__version__ = "0.1.0"

__all__ = [
    "BuilderGenerator",
    "GenerationResult",
    "GeneratorConfig",
    "RawDefinition",
    "generate_builder",
    "load_config",
    "generate_from_class",
    "generate_from_source",
    "materialize_builder",
    "with_builder",
    "UNSET",
    "BuildOutcome",
    "BuildValidationError",
    "BuilderDiagnosticError",
    "UninitializedFieldError",
]
