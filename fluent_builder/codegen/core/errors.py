"""
Generation-time error taxonomy.

These errors never escape the generator: the pipeline converts each one
into a diagnostic pinned to the offending construct.
"""

from typing import Optional

from .location import SourceLocation


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        field_name: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.location = location or SourceLocation.unknown()
        self.field_name = field_name

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


class SchemaExtractionError(GeneratorError):
    """The definition is not a plain named-field record; fatal for the whole definition."""

    pass


class AnnotationError(GeneratorError):
    """A ``builder`` annotation is malformed; fatal for the annotated field only."""

    pass


class MethodCollisionError(GeneratorError):
    """A synthesized method name clashes with another builder member."""

    pass
