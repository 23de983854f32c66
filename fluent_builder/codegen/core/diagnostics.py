"""
Diagnostic reporting for generation failures.

Generation errors are not raised to the caller. They are turned into
source that, when executed, raises a BuilderDiagnosticError pinned to
the definition or annotation that caused them.
"""

from typing import Iterable, List, Optional

from .errors import GeneratorError
from .location import SourceLocation
from .templates import TemplateEngine, create_template_engine
from ...logging_config import get_logger
from ...runtime import Diagnostic

logger = get_logger(__name__)


class DiagnosticReporter:
    """Converts generator errors into diagnostics and diagnostic source."""

    def __init__(
        self,
        runtime_module: str = "fluent_builder.runtime",
        template_engine: Optional[TemplateEngine] = None,
    ):
        self.runtime_module = runtime_module
        self.template_engine = template_engine or create_template_engine()

    def to_diagnostic(self, error: GeneratorError) -> Diagnostic:
        """Describe one generator error."""
        location = error.location
        logger.warning("%s: %s", location, error.message)
        return Diagnostic(
            severity="error",
            message=error.message,
            file=location.file,
            line=location.line,
            column=location.column,
            field_name=error.field_name,
        )

    def internal_error(
        self, exc: BaseException, location: SourceLocation
    ) -> Diagnostic:
        """Describe an unexpected failure inside the generator itself."""
        logger.error("Internal generator error at %s", location, exc_info=exc)
        return Diagnostic(
            severity="error",
            message=f"internal builder generator error: {type(exc).__name__}: {exc}",
            file=location.file,
            line=location.line,
            column=location.column,
        )

    def collect(self, errors: Iterable[GeneratorError]) -> List[Diagnostic]:
        """Diagnostics for errors, ordered by source position."""
        diagnostics = [self.to_diagnostic(e) for e in errors]
        return sorted(diagnostics, key=lambda d: (d.file, d.line, d.column))

    def render(self, diagnostics: List[Diagnostic], standalone: bool = True) -> str:
        """
        Render diagnostics as Python source.

        Args:
            diagnostics: Diagnostics to surface
            standalone: Include the runtime import; False when the code is
                appended to a module that already imports it

        Returns:
            Source whose execution raises BuilderDiagnosticError
        """
        return self.template_engine.render_template(
            "diagnostics.py.j2",
            {
                "diagnostics": diagnostics,
                "standalone": standalone,
                "runtime_module": self.runtime_module,
            },
        )
