"""
Builder code generation.

Generates companion builder classes from record definitions.
"""

from .core.generator import BuilderGenerator, GenerationResult, generate_builder
from .core.schema import RawDefinition, RawField, Annotation, extract_schema
from .core.location import SourceLocation
from .core.config import GeneratorConfig, ConfigManager, load_config
from .core.errors import GeneratorError

__all__ = [
    "BuilderGenerator",
    "GenerationResult",
    "generate_builder",
    "RawDefinition",
    "RawField",
    "Annotation",
    "SourceLocation",
    "extract_schema",
    "GeneratorConfig",
    "ConfigManager",
    "load_config",
    "GeneratorError",
]
