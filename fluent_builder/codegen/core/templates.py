"""
Template engine wrapper for builder generation.

Provides a simple interface for Jinja2 template rendering with the
in-memory templates the builder emitter uses.
"""

from typing import Any, Dict

from jinja2 import DictLoader, Environment, StrictUndefined


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


class TemplateEngine:
    """Wrapper for Jinja2 template engine with code generation utilities."""

    def __init__(self, templates: Dict[str, str] = None):
        """
        Initialize template engine.

        Args:
            templates: Mapping of template name to template source
        """
        self._env = Environment(
            loader=DictLoader(dict(templates or {})),
            # Generated Python must never be HTML-escaped
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

        self._env.filters["pyrepr"] = repr

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of a registered template
            context: Variables to pass to template

        Returns:
            Rendered template content
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except Exception as e:
            raise TemplateError(
                f"Failed to render template {template_name}: {e}"
            ) from e


# Built-in templates

BUILDER_MODULE_TEMPLATE = '''\
{% if add_comments %}
"""Builder for {{ record_name }}.

Generated by fluent-builder. Do not edit.
"""

{% endif %}
from __future__ import annotations

from {{ runtime_module }} import {{ runtime_imports | join(", ") }}
{% if record_import %}
{{ record_import }}
{% endif %}


{{ class_code }}
{% if factory_name %}


def {{ factory_name }}() -> {{ builder_name }}:
    return {{ builder_name }}()
{% endif %}
{% if diagnostics_code %}


{{ diagnostics_code }}
{% endif %}
'''

BUILDER_CLASS_TEMPLATE = '''\
class {{ builder_name }}:
{% if add_comments %}
    """Builder for :class:`{{ record_name }}`.

    Every setter updates the builder in place and returns it, so calls
    can be chained. ``build()`` checks that required fields were set.
    """

{% endif %}
{% if use_slots %}
    __slots__ = ({% for f in fields %}{{ f.storage | pyrepr }},{% if not loop.last %} {% endif %}{% endfor %})

{% endif %}
    def __init__(self) -> None:
{% for f in fields %}
        self.{{ f.storage }} = {{ f.initial }}
{% else %}
        pass
{% endfor %}
{% for s in setters %}

    def {{ s.method_name }}(self, {{ s.param_name }}: {{ s.param_type }}) -> {{ builder_name }}:
{% if add_comments %}
        """{{ s.doc }}"""
{% endif %}
{% if s.kind == "assign" %}
        self.{{ s.storage }} = {{ s.param_name }}
{% elif s.kind == "accumulate" %}
        self.{{ s.storage }}.append({{ s.param_name }})
{% else %}
        self.{{ s.storage }} = list({{ s.param_name }})
{% endif %}
        return self
{% endfor %}

    def build(self) -> {{ record_name }}:
{% if add_comments %}
        """Assemble the record, failing on the first unset required field."""
{% endif %}
{% for f in fields if f.required %}
        if self.{{ f.storage }} is UNSET:
            raise UninitializedFieldError({{ f.name | pyrepr }}, {{ record_name | pyrepr }})
{% endfor %}
        return {{ record_name }}(
{% for f in fields %}
            {{ f.name }}={{ f.value_expr }},
{% endfor %}
        )

    def try_build(self) -> BuildOutcome:
{% if add_comments %}
        """Like ``build()``, but returns the validation error instead of raising it."""
{% endif %}
        try:
            return BuildOutcome(self.build(), None)
        except BuildValidationError as error:
            return BuildOutcome(None, error)
'''

DIAGNOSTICS_TEMPLATE = '''\
{% if standalone %}
from {{ runtime_module }} import Diagnostic, emit_diagnostics


{% endif %}
emit_diagnostics(
    [
{% for d in diagnostics %}
        Diagnostic(
            severity={{ d.severity | pyrepr }},
            message={{ d.message | pyrepr }},
            file={{ d.file | pyrepr }},
            line={{ d.line }},
            column={{ d.column }},
            field_name={{ d.field_name | pyrepr }},
        ),
{% endfor %}
    ]
)
'''


def create_template_engine() -> TemplateEngine:
    """Create a template engine with the builder templates registered."""
    return TemplateEngine(
        {
            "builder_module.py.j2": BUILDER_MODULE_TEMPLATE,
            "builder_class.py.j2": BUILDER_CLASS_TEMPLATE,
            "diagnostics.py.j2": DIAGNOSTICS_TEMPLATE,
        }
    )
