"""
Core builder generation components.

Extraction, classification, method synthesis, emission and diagnostic
reporting, plus the pipeline that runs them in order.
"""

from .generator import BuilderGenerator, GenerationResult, generate_builder
from .errors import (
    GeneratorError,
    SchemaExtractionError,
    AnnotationError,
    MethodCollisionError,
)
from .location import SourceLocation
from .schema import (
    Annotation,
    DefinitionKind,
    FieldDescriptor,
    RawDefinition,
    RawField,
    RecordSchema,
    extract_schema,
    tokenize_type,
)
from .types import (
    BuilderSchema,
    Classification,
    ClassifiedField,
    FieldKind,
    TypeClassifier,
    parse_type_shape,
)
from .methods import FieldMethods, MethodSynthesizer, SetterKind, SetterSpec
from .emitter import BuildEmitter
from .diagnostics import DiagnosticReporter
from .config import (
    ACCUMULATOR_KEY,
    BUILDER_NAMESPACE,
    ConfigError,
    ConfigManager,
    GeneratorConfig,
    load_config,
)
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Pipeline
    "BuilderGenerator",
    "GenerationResult",
    "generate_builder",
    # Errors
    "GeneratorError",
    "SchemaExtractionError",
    "AnnotationError",
    "MethodCollisionError",
    # Schema
    "SourceLocation",
    "Annotation",
    "DefinitionKind",
    "FieldDescriptor",
    "RawDefinition",
    "RawField",
    "RecordSchema",
    "extract_schema",
    "tokenize_type",
    # Classification
    "BuilderSchema",
    "Classification",
    "ClassifiedField",
    "FieldKind",
    "TypeClassifier",
    "parse_type_shape",
    # Synthesis and emission
    "FieldMethods",
    "MethodSynthesizer",
    "SetterKind",
    "SetterSpec",
    "BuildEmitter",
    "DiagnosticReporter",
    # Configuration
    "ACCUMULATOR_KEY",
    "BUILDER_NAMESPACE",
    "ConfigError",
    "ConfigManager",
    "GeneratorConfig",
    "load_config",
    # Templates
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
