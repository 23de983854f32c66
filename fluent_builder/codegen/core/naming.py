"""
Naming utilities for builder generation.

Builder members are never renamed to dodge a conflict: a name that is
not a usable Python identifier, or that clashes with a reserved builder
member, is reported instead.
"""

import keyword
import re
from typing import Set


# Members every generated builder defines itself
RESERVED_BUILDER_MEMBERS: Set[str] = {"build", "try_build"}


def is_valid_identifier(name: object) -> bool:
    """True if ``name`` is a string usable as a Python identifier."""
    return (
        isinstance(name, str)
        and name.isidentifier()
        and not keyword.iskeyword(name)
    )


def is_reserved_member(name: str) -> bool:
    """True if a setter called ``name`` would shadow builder internals."""
    return name in RESERVED_BUILDER_MEMBERS or name.startswith("_")


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    name = name.replace("-", "_")

    # Split acronyms from words: HTTPServer -> HTTP_Server
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)

    name = name.lower()
    name = re.sub(r"_+", "_", name)

    return name.strip("_")


def builder_class_name(record_name: str, suffix: str = "Builder") -> str:
    """Name of the companion builder class: ``Command`` -> ``CommandBuilder``."""
    return f"{record_name}{suffix}"


def factory_function_name(record_name: str) -> str:
    """Name of the module-level factory: ``HTTPCommand`` -> ``http_command_builder``."""
    return f"{to_snake_case(record_name)}_builder"


def storage_attribute(field_name: str) -> str:
    """Private attribute holding a field's pending value inside the builder."""
    return f"_{field_name}"
