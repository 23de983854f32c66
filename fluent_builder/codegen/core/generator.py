"""
Builder generation pipeline.

Runs extraction, classification, synthesis and emission for one record
definition. Generation never raises: every failure ends up as a
diagnostic inside the returned GenerationResult.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from .config import GeneratorConfig
from .diagnostics import DiagnosticReporter
from .emitter import BuildEmitter
from .errors import GeneratorError, SchemaExtractionError
from .location import SourceLocation
from .methods import MethodSynthesizer
from .naming import builder_class_name
from .schema import RawDefinition, extract_schema
from .templates import create_template_engine
from .types import FieldKind, TypeClassifier
from ...logging_config import get_logger
from ...runtime import Diagnostic

logger = get_logger(__name__)


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self,
        code: str,
        warnings: List[str] = None,
        metadata: Dict[str, Any] = None,
        diagnostics: List[Diagnostic] = None,
    ):
        """
        Initialize generation result.

        Args:
            code: Generated module source; diagnostic-only source on failure
            warnings: Non-fatal remarks about the generation
            metadata: Additional metadata about generation
            diagnostics: Errors that replaced part or all of the builder
        """
        self.code = code
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.diagnostics = diagnostics or []

    @property
    def success(self) -> bool:
        return not self.diagnostics

    @property
    def error_message(self) -> Optional[str]:
        if not self.diagnostics:
            return None
        return "\n".join(d.format() for d in self.diagnostics)

    def __repr__(self) -> str:
        state = "ok" if self.success else f"{len(self.diagnostics)} diagnostics"
        return f"<GenerationResult {self.metadata.get('builder_name', '?')}: {state}>"


class BuilderGenerator:
    """Generates companion builder modules for record definitions.

    Holds no per-definition state, so one instance can serve any number
    of independent ``generate()`` calls.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize generator with optional configuration."""
        self.config = config or GeneratorConfig()
        engine = create_template_engine()
        self.classifier = TypeClassifier(self.config)
        self.synthesizer = MethodSynthesizer()
        self.emitter = BuildEmitter(self.config, engine)
        self.reporter = DiagnosticReporter(self.config.runtime_module, engine)

    def generate(self, raw: Union[RawDefinition, Dict[str, Any]]) -> GenerationResult:
        """
        Generate the builder for one definition.

        Args:
            raw: Definition from a front-end, as an object or its dict form

        Returns:
            GenerationResult with builder source, or with diagnostic source
            when the definition as a whole cannot carry a builder
        """
        try:
            return self._generate(raw)
        except Exception as e:
            name, location = _describe(raw)
            diagnostic = self.reporter.internal_error(e, location)
            return self._diagnostic_result(name, [diagnostic])

    def _generate(self, raw) -> GenerationResult:
        try:
            record = extract_schema(raw)
        except SchemaExtractionError as e:
            name, _ = _describe(raw)
            return self._diagnostic_result(name, self.reporter.collect([e]))

        builder_name = builder_class_name(record.name, self.config.builder_suffix)
        schema, annotation_errors = self.classifier.classify_schema(
            record, builder_name
        )
        methods, collision_errors = self.synthesizer.synthesize(schema)

        errors: List[GeneratorError] = [*annotation_errors, *collision_errors]
        diagnostics = self.reporter.collect(errors)
        diagnostics_code = None
        if diagnostics:
            diagnostics_code = self.reporter.render(diagnostics, standalone=False)

        code = self.format_code(
            self.emitter.emit_module(schema, methods, diagnostics_code)
        )

        warnings = self._warnings(record)
        kinds = [m.classified.kind for m in methods]
        metadata = {
            "record_name": record.name,
            "builder_name": builder_name,
            "field_count": len(record.fields),
            "required_fields": kinds.count(FieldKind.REQUIRED),
            "optional_fields": kinds.count(FieldKind.ALREADY_OPTIONAL),
            "repeated_fields": kinds.count(FieldKind.REPEATED),
            "methods": [s.method_name for m in methods for s in m.setters],
            "fields": [
                {
                    "name": m.classified.name,
                    "type": m.classified.type_text,
                    "kind": m.classified.kind.value,
                    "methods": [s.method_name for s in m.setters],
                }
                for m in methods
            ],
            "rejected_fields": [e.field_name for e in errors],
            "location": record.location.to_dict(),
        }

        logger.info(
            "Generated %s with %d setters (%d diagnostics)",
            builder_name,
            len(metadata["methods"]),
            len(diagnostics),
        )
        return GenerationResult(code, warnings, metadata, diagnostics)

    def _diagnostic_result(
        self, name: str, diagnostics: List[Diagnostic]
    ) -> GenerationResult:
        code = self.format_code(self.reporter.render(diagnostics, standalone=True))
        return GenerationResult(
            code,
            metadata={"record_name": name, "builder_name": None},
            diagnostics=diagnostics,
        )

    def _warnings(self, record) -> List[str]:
        warnings = []
        if not record.fields:
            warnings.append(f"Record '{record.name}' has no fields")
        for descriptor in record.fields:
            warning = self.classifier.name_only_match_warning(descriptor)
            if warning:
                warnings.append(warning)
        return warnings

    def format_code(self, code: str) -> str:
        """
        Normalize whitespace in generated code.

        Args:
            code: Raw generated code

        Returns:
            Code without trailing whitespace, at most two consecutive blank
            lines, and a single final newline
        """
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 2:
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"


def _describe(raw) -> Tuple[Optional[str], SourceLocation]:
    """Name and location of a definition, tolerating malformed dicts."""
    if isinstance(raw, RawDefinition):
        return raw.name, raw.location
    try:
        return raw.get("name"), SourceLocation.from_dict(raw.get("location"))
    except (AttributeError, TypeError, ValueError):
        return None, SourceLocation.unknown()


def generate_builder(
    raw: Union[RawDefinition, Dict[str, Any]],
    config: Optional[GeneratorConfig] = None,
) -> GenerationResult:
    """
    Generate a builder for one definition with a fresh generator.

    Args:
        raw: Definition from a front-end
        config: Generator configuration

    Returns:
        GenerationResult with code, warnings, diagnostics and metadata
    """
    return BuilderGenerator(config).generate(raw)
