"""
Syntactic type classification for builder fields.

No resolved type information exists at generation time, so every field
is classified from the shape of its annotation tokens alone:

- ``Optional[T]`` (or ``T | None``) is already optional,
- a ``builder`` annotation on ``list[T]``-like types makes it repeated,
- everything else is required.

Matching is by the last path segment of the type name. A user type that
happens to be called ``List`` or ``Optional`` is matched all the same;
that limitation is accepted, and reported as a warning when the name is
qualified by a module that is not a known typing namespace.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import ACCUMULATOR_KEY, BUILDER_NAMESPACE, GeneratorConfig
from .errors import AnnotationError
from .location import SourceLocation
from .naming import is_valid_identifier
from .schema import FieldDescriptor, RecordSchema, join_type_tokens
from ...logging_config import get_logger

logger = get_logger(__name__)

Tokens = Tuple[str, ...]

# Qualifiers under which the standard container names are expected to live
KNOWN_TYPE_NAMESPACES = {
    "typing",
    "typing_extensions",
    "t",
    "builtins",
    "collections.abc",
    "abc",
}

_OPEN = {"[": "]", "(": ")", "{": "}"}
_CLOSE = {"]", ")", "}"}


class FieldKind(Enum):
    """How the builder stores and validates a field."""

    REQUIRED = "required"
    ALREADY_OPTIONAL = "already_optional"
    REPEATED = "repeated"


@dataclass(frozen=True)
class Classification:
    """Tagged classification of one field.

    ``inner`` is the element type for repeated fields, the wrapped type for
    already-optional fields, and the type as written for required ones.
    ``accumulator`` is set only for repeated fields.
    """

    kind: FieldKind
    inner: Tokens
    accumulator: Optional[str] = None

    @classmethod
    def required(cls, inner: Tokens) -> "Classification":
        return cls(FieldKind.REQUIRED, inner)

    @classmethod
    def already_optional(cls, inner: Tokens) -> "Classification":
        return cls(FieldKind.ALREADY_OPTIONAL, inner)

    @classmethod
    def repeated(cls, inner: Tokens, accumulator: str) -> "Classification":
        return cls(FieldKind.REPEATED, inner, accumulator)


@dataclass(frozen=True)
class ClassifiedField:
    """A field together with its classification."""

    descriptor: FieldDescriptor
    classification: Classification

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def kind(self) -> FieldKind:
        return self.classification.kind

    @property
    def type_text(self) -> str:
        return self.descriptor.type_text

    @property
    def inner_text(self) -> str:
        return join_type_tokens(self.classification.inner)


@dataclass
class BuilderSchema:
    """Classified fields of one record, in declaration order."""

    record_name: str
    builder_name: str
    fields: List[ClassifiedField]
    location: SourceLocation

    def get_field(self, name: str) -> Optional[ClassifiedField]:
        for classified in self.fields:
            if classified.name == name:
                return classified
        return None


@dataclass(frozen=True)
class TypeShape:
    """
    Structural view of a type expression.

    ``path`` holds the dotted name segments (``("typing", "List")``),
    ``args`` the generic arguments split at top-level commas, or None when
    the type is not subscripted. ``members`` is filled for top-level
    ``|`` unions instead. An expression that fits none of these has an
    empty path and is treated as opaque.
    """

    tokens: Tokens
    path: Tuple[str, ...] = ()
    args: Optional[Tuple[Tokens, ...]] = None
    members: Tuple[Tokens, ...] = ()

    @property
    def last_segment(self) -> Optional[str]:
        return self.path[-1] if self.path else None

    @property
    def qualifier(self) -> str:
        return ".".join(self.path[:-1])

    def is_single_generic_of(self, names: Iterable[str]) -> bool:
        """True for ``<name>[T]`` with exactly one argument."""
        return (
            self.last_segment in set(names)
            and self.args is not None
            and len(self.args) == 1
            and len(self.args[0]) > 0
        )

    def none_union_inner(self) -> Optional[Tokens]:
        """The ``T`` of ``T | None`` / ``None | T``, if this is that union."""
        if len(self.members) != 2:
            return None
        first, second = self.members
        if second == ("None",) and first and first != ("None",):
            return first
        if first == ("None",) and second and second != ("None",):
            return second
        return None


def _split_top_level(tokens: Sequence[str], separator: str) -> Optional[List[Tokens]]:
    """Split at separators outside brackets; None if brackets don't balance."""
    parts: List[Tokens] = []
    current: List[str] = []
    stack: List[str] = []

    for token in tokens:
        if token in _OPEN:
            stack.append(_OPEN[token])
        elif token in _CLOSE:
            if not stack or stack.pop() != token:
                return None

        if token == separator and not stack:
            parts.append(tuple(current))
            current = []
        else:
            current.append(token)

    if stack:
        return None
    parts.append(tuple(current))
    return parts


def parse_type_shape(tokens: Sequence[str]) -> TypeShape:
    """Parse a token sequence into a TypeShape."""
    tokens = tuple(tokens)
    opaque = TypeShape(tokens)

    members = _split_top_level(tokens, "|")
    if members is None:
        return opaque
    if len(members) > 1:
        return TypeShape(tokens, members=tuple(members))

    # Dotted name: ident (. ident)*
    path = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if not is_valid_identifier(token) and token != "None":
            break
        path.append(token)
        i += 1
        if i < len(tokens) and tokens[i] == ".":
            i += 1
            continue
        break

    if not path:
        return opaque
    if i == len(tokens):
        return TypeShape(tokens, path=tuple(path))

    # Subscript must close at the very last token: name[...]
    if tokens[i] != "[" or tokens[-1] != "]":
        return opaque
    body = tokens[i + 1 : -1]
    args = _split_top_level(body, ",")
    if args is None:
        return opaque
    if args and args[-1] == ():
        # trailing comma
        args = args[:-1]

    return TypeShape(tokens, path=tuple(path), args=tuple(args))


class TypeClassifier:
    """Classifies fields as required, already-optional or repeated."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()

    def classify(self, descriptor: FieldDescriptor) -> Classification:
        """
        Classify a single field from its type tokens and annotations.

        Raises:
            AnnotationError: If a ``builder`` annotation is present but
                malformed or attached to a non-sequence type
        """
        shape = parse_type_shape(descriptor.type_tokens)

        builder_annotations = descriptor.annotations_in(BUILDER_NAMESPACE)
        if builder_annotations:
            return self._classify_repeated(descriptor, shape, builder_annotations)

        if shape.is_single_generic_of(self.config.optional_types):
            return Classification.already_optional(shape.args[0])

        if self.config.recognize_none_union:
            inner = shape.none_union_inner()
            if inner is not None:
                return Classification.already_optional(inner)

        return Classification.required(descriptor.type_tokens)

    def _classify_repeated(self, descriptor, shape, annotations) -> Classification:
        annotation = annotations[0]
        location = annotation.location
        if location == SourceLocation.unknown():
            location = descriptor.location

        def fail(message: str) -> AnnotationError:
            return AnnotationError(message, location, descriptor.name)

        if len(annotations) > 1:
            keys = ", ".join(repr(a.key) for a in annotations)
            raise fail(
                f"'{BUILDER_NAMESPACE}' on field '{descriptor.name}' takes exactly "
                f"one key '{ACCUMULATOR_KEY}', got {keys}"
            )

        if annotation.key is None:
            raise fail(
                f"'{BUILDER_NAMESPACE}' on field '{descriptor.name}' is missing "
                f"the '{ACCUMULATOR_KEY}' key, "
                f"e.g. {{'{BUILDER_NAMESPACE}': {{'{ACCUMULATOR_KEY}': 'name'}}}}"
            )

        if annotation.key != ACCUMULATOR_KEY:
            raise fail(
                f"unknown '{BUILDER_NAMESPACE}' key {annotation.key!r} on field "
                f"'{descriptor.name}'; expected '{ACCUMULATOR_KEY}'"
            )

        if not is_valid_identifier(annotation.value):
            raise fail(
                f"'{ACCUMULATOR_KEY}' must name a method with a valid identifier, "
                f"got {annotation.value!r}"
            )

        if not shape.is_single_generic_of(self.config.sequence_types):
            expected = " or ".join(f"{name}[T]" for name in self.config.sequence_types)
            hint = ""
            if shape.is_single_generic_of(
                self.config.optional_types
            ) or shape.none_union_inner():
                hint = "; optional-wrapped sequences cannot be accumulated"
            raise fail(
                f"field '{descriptor.name}' of type '{descriptor.type_text}' cannot "
                f"be accumulated: expected {expected}{hint}"
            )

        return Classification.repeated(shape.args[0], annotation.value)

    def name_only_match_warning(self, descriptor: FieldDescriptor) -> Optional[str]:
        """Warn when a container was recognized by a foreign-qualified name."""
        shape = parse_type_shape(descriptor.type_tokens)
        if not shape.qualifier or shape.qualifier in KNOWN_TYPE_NAMESPACES:
            return None
        recognized = set(self.config.optional_types) | set(self.config.sequence_types)
        if shape.last_segment in recognized and shape.args is not None:
            return (
                f"Field '{descriptor.name}': '{descriptor.type_text}' was recognized "
                f"by its name '{shape.last_segment}' only"
            )
        return None

    def classify_schema(
        self, schema: RecordSchema, builder_name: str
    ) -> Tuple[BuilderSchema, List[AnnotationError]]:
        """
        Classify every field of a schema.

        A failing field is left out of the returned BuilderSchema and its
        error is collected; its siblings are still classified.
        """
        classified = []
        errors = []

        for descriptor in schema.fields:
            try:
                classification = self.classify(descriptor)
            except AnnotationError as e:
                logger.debug("Field '%s' rejected: %s", descriptor.name, e.message)
                errors.append(e)
                continue

            logger.debug(
                "Field '%s' classified as %s",
                descriptor.name,
                classification.kind.value,
            )
            classified.append(ClassifiedField(descriptor, classification))

        builder_schema = BuilderSchema(
            record_name=schema.name,
            builder_name=builder_name,
            fields=classified,
            location=schema.location,
        )
        return builder_schema, errors
