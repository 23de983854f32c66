"""
Core schema representation for builder generation.

Converts a raw parsed definition (from a front-end, as an object or as a
plain dict) into a normalized, ordered field list the rest of the
generator can work with consistently.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .errors import SchemaExtractionError
from .location import SourceLocation
from .naming import is_valid_identifier
from ...logging_config import get_logger

logger = get_logger(__name__)


class DefinitionKind(Enum):
    """Shapes a front-end can report for a class-like definition."""

    RECORD = "record"  # named fields
    TUPLE = "tuple"  # positional fields only
    VARIANT = "variant"  # enum-like alternatives
    UNIT = "unit"  # no fields at all
    PLAIN = "plain"  # fields, but no constructor taking them by keyword


@dataclass(frozen=True)
class Annotation:
    """Inert marker attached to a field: ``namespace[key] = value``."""

    namespace: str
    key: Optional[str] = None
    value: Any = None
    location: SourceLocation = field(default_factory=SourceLocation.unknown)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Annotation":
        return cls(
            namespace=data["namespace"],
            key=data.get("key"),
            value=data.get("value"),
            location=SourceLocation.from_dict(data.get("location")),
        )


@dataclass
class RawField:
    """A field as reported by the front-end, before normalization."""

    name: Optional[str]
    type: Union[str, Sequence[str]]
    annotations: List[Annotation] = field(default_factory=list)
    location: SourceLocation = field(default_factory=SourceLocation.unknown)


@dataclass
class RawDefinition:
    """A class-like definition as reported by the front-end."""

    name: str
    kind: Union[DefinitionKind, str] = DefinitionKind.RECORD
    fields: List[RawField] = field(default_factory=list)
    location: SourceLocation = field(default_factory=SourceLocation.unknown)
    type_params: List[str] = field(default_factory=list)
    decorators: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawDefinition":
        """Build a definition from its JSON-compatible dict form."""
        return cls(
            name=data.get("name", ""),
            kind=data.get("kind", DefinitionKind.RECORD.value),
            fields=[
                RawField(
                    name=item.get("name"),
                    type=item.get("type", ""),
                    annotations=[
                        Annotation.from_dict(a) for a in item.get("annotations", [])
                    ],
                    location=SourceLocation.from_dict(item.get("location")),
                )
                for item in data.get("fields", [])
            ],
            location=SourceLocation.from_dict(data.get("location")),
            type_params=list(data.get("type_params", [])),
            decorators=list(data.get("decorators", [])),
        )


@dataclass
class FieldDescriptor:
    """Represents a single field of the record being built."""

    name: str
    type_tokens: Tuple[str, ...]
    annotations: List[Annotation] = field(default_factory=list)
    location: SourceLocation = field(default_factory=SourceLocation.unknown)

    @property
    def type_text(self) -> str:
        """The field's type rendered back to source form."""
        return join_type_tokens(self.type_tokens)

    def annotations_in(self, namespace: str) -> List[Annotation]:
        return [a for a in self.annotations if a.namespace == namespace]


@dataclass
class RecordSchema:
    """Ordered, unclassified field list of one record definition."""

    name: str
    fields: List[FieldDescriptor] = field(default_factory=list)
    location: SourceLocation = field(default_factory=SourceLocation.unknown)

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        """Get field by name."""
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None


# Type expression tokenizer

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<name>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<ellipsis>\.\.\.)
      | (?P<punct>[\[\](),.|])
      | (?P<number>-?\d+)
      | (?P<string>'(?:[^'\\\n]|\\.)*'|"(?:[^"\\\n]|\\.)*")
      | (?P<other>\S)
    )
    """,
    re.VERBOSE,
)


def tokenize_type(text: str) -> Tuple[str, ...]:
    """
    Split a type annotation expression into tokens.

    ``typing.List[str]`` becomes ``("typing", ".", "List", "[", "str", "]")``.
    Any other non-blank character becomes a token of its own, so metadata
    such as ``Annotated[int, Field(gt=0)]`` passes through untouched and the
    type is simply treated as opaque later on.
    """
    tokens = []
    pos = 0
    text = text.strip()

    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        tokens.append(match.group(match.lastgroup))
        pos = match.end()

    return tuple(tokens)


def join_type_tokens(tokens: Sequence[str]) -> str:
    """Render a token sequence back into a readable type expression."""
    parts = []
    for token in tokens:
        if token == ",":
            parts.append(", ")
        elif token == "|":
            parts.append(" | ")
        else:
            parts.append(token)
    return "".join(parts)


def _normalize_tokens(
    raw_type: Union[str, Sequence[str]], location: SourceLocation, field_name: str
) -> Tuple[str, ...]:
    if isinstance(raw_type, str):
        tokens = tokenize_type(raw_type)
    else:
        tokens = tuple(str(token) for token in raw_type)

    if not tokens:
        raise SchemaExtractionError(
            f"field '{field_name}' has no type", location, field_name
        )
    return tokens


def _coerce_kind(kind: Union[DefinitionKind, str]) -> Optional[DefinitionKind]:
    if isinstance(kind, DefinitionKind):
        return kind
    try:
        return DefinitionKind(kind)
    except ValueError:
        return None


def extract_schema(raw: Union[RawDefinition, Dict[str, Any]]) -> RecordSchema:
    """
    Normalize a raw parsed definition into a RecordSchema.

    Only the plain named-field record shape is accepted; everything else
    fails once for the whole definition.

    Args:
        raw: Definition object or its dict form

    Returns:
        RecordSchema with fields in declaration order

    Raises:
        SchemaExtractionError: If the definition cannot carry a builder
    """
    if isinstance(raw, dict):
        try:
            raw = RawDefinition.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SchemaExtractionError(
                f"malformed definition {raw.get('name')!r}: {e!r}",
                SourceLocation.unknown(),
            ) from e

    location = raw.location
    kind = _coerce_kind(raw.kind)

    if not is_valid_identifier(raw.name):
        raise SchemaExtractionError(
            f"definition name {raw.name!r} is not a valid identifier", location
        )

    if kind is DefinitionKind.PLAIN:
        raise SchemaExtractionError(
            f"'{raw.name}' has no constructor taking its fields as keyword "
            f"arguments; make it a dataclass or give it an __init__",
            location,
        )

    if kind is not DefinitionKind.RECORD:
        shape = kind.value if kind else repr(raw.kind)
        raise SchemaExtractionError(
            f"builders can only be generated for records with named fields; "
            f"'{raw.name}' is a {shape} definition",
            location,
        )

    if raw.type_params:
        raise SchemaExtractionError(
            f"'{raw.name}' declares type parameters "
            f"({', '.join(raw.type_params)}); generic records are not supported",
            location,
        )

    schema = RecordSchema(name=raw.name, location=location)
    seen = set()

    for raw_field in raw.fields:
        field_location = raw_field.location
        if field_location == SourceLocation.unknown():
            field_location = location
        if not raw_field.name:
            raise SchemaExtractionError(
                f"'{raw.name}' has a field without a name", field_location
            )

        if not is_valid_identifier(raw_field.name):
            raise SchemaExtractionError(
                f"field name {raw_field.name!r} is not a valid identifier",
                field_location,
                raw_field.name,
            )

        if raw_field.name in seen:
            raise SchemaExtractionError(
                f"duplicate field '{raw_field.name}' in '{raw.name}'",
                field_location,
                raw_field.name,
            )
        seen.add(raw_field.name)

        schema.fields.append(
            FieldDescriptor(
                name=raw_field.name,
                type_tokens=_normalize_tokens(
                    raw_field.type, field_location, raw_field.name
                ),
                annotations=list(raw_field.annotations),
                location=field_location,
            )
        )

    logger.debug("Extracted %d fields from '%s'", len(schema.fields), schema.name)
    return schema
