"""
Build-routine and builder-class emission.

Renders the synthesized method set into a builder class whose
``build()`` walks the fields in declaration order:

- a required field that was never set fails the build, first one wins,
- an already-optional field that was never set becomes None,
- a repeated field that was never touched becomes an empty list.

Sequences are copied on the way in and out, so neither the caller's
list nor the built record aliases builder storage.
"""

from typing import Any, Dict, List, Optional

from .config import GeneratorConfig
from .methods import FieldMethods, SetterKind, SetterSpec
from .naming import factory_function_name, storage_attribute
from .templates import TemplateEngine, create_template_engine
from .types import BuilderSchema, ClassifiedField, FieldKind

RUNTIME_IMPORTS = [
    "BuildOutcome",
    "BuildValidationError",
    "UNSET",
    "UninitializedFieldError",
]
DIAGNOSTIC_IMPORTS = ["Diagnostic", "emit_diagnostics"]


def _field_context(classified: ClassifiedField) -> Dict[str, Any]:
    storage = storage_attribute(classified.name)
    kind = classified.kind

    if kind == FieldKind.REPEATED:
        initial = "[]"
        value_expr = f"list(self.{storage})"
    elif kind == FieldKind.ALREADY_OPTIONAL:
        initial = "UNSET"
        value_expr = f"None if self.{storage} is UNSET else self.{storage}"
    else:
        initial = "UNSET"
        value_expr = f"self.{storage}"

    return {
        "name": classified.name,
        "storage": storage,
        "initial": initial,
        "required": kind == FieldKind.REQUIRED,
        "value_expr": value_expr,
    }


def _setter_doc(setter: SetterSpec, classified: ClassifiedField) -> str:
    name = setter.field_name
    if setter.kind == SetterKind.ACCUMULATE:
        return f"Append one element to ``{name}``."
    if setter.kind == SetterKind.REPLACE_ALL:
        return f"Replace ``{name}`` with a copy of ``values``."
    if classified.kind == FieldKind.ALREADY_OPTIONAL:
        return f"Set ``{name}``; builds as None if never called."
    return f"Set ``{name}``."


def _setter_context(setter: SetterSpec, classified: ClassifiedField) -> Dict[str, Any]:
    return {
        "method_name": setter.method_name,
        "param_name": setter.param_name,
        "param_type": setter.param_type,
        "kind": setter.kind.value,
        "storage": setter.storage,
        "doc": _setter_doc(setter, classified),
    }


class BuildEmitter:
    """Renders builder classes and modules from synthesized method sets."""

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        template_engine: Optional[TemplateEngine] = None,
    ):
        self.config = config or GeneratorConfig()
        self.template_engine = template_engine or create_template_engine()

    def emit_class(self, schema: BuilderSchema, methods: List[FieldMethods]) -> str:
        """Render the builder class definition only."""
        fields = [_field_context(m.classified) for m in methods]
        setters = [
            _setter_context(setter, m.classified)
            for m in methods
            for setter in m.setters
        ]

        return self.template_engine.render_template(
            "builder_class.py.j2",
            {
                "builder_name": schema.builder_name,
                "record_name": schema.record_name,
                "fields": fields,
                "setters": setters,
                "add_comments": self.config.add_comments,
                "use_slots": self.config.use_slots,
            },
        )

    def emit_module(
        self,
        schema: BuilderSchema,
        methods: List[FieldMethods],
        diagnostics_code: Optional[str] = None,
    ) -> str:
        """
        Render a complete module holding the builder.

        Args:
            schema: Classified schema of the record
            methods: Method sets of the fields that survived synthesis
            diagnostics_code: Diagnostic source to append after the class,
                for fields whose generation failed

        Returns:
            Module source
        """
        runtime_imports = list(RUNTIME_IMPORTS)
        if diagnostics_code:
            runtime_imports.extend(DIAGNOSTIC_IMPORTS)

        record_import = None
        if self.config.record_module:
            record_import = (
                f"from {self.config.record_module} import {schema.record_name}"
            )

        factory_name = None
        if self.config.add_factory_function:
            factory_name = factory_function_name(schema.record_name)

        return self.template_engine.render_template(
            "builder_module.py.j2",
            {
                "record_name": schema.record_name,
                "builder_name": schema.builder_name,
                "runtime_module": self.config.runtime_module,
                "runtime_imports": sorted(runtime_imports),
                "record_import": record_import,
                "class_code": self.emit_class(schema, methods).rstrip(),
                "factory_name": factory_name,
                "diagnostics_code": (diagnostics_code or "").rstrip(),
                "add_comments": self.config.add_comments,
            },
        )
