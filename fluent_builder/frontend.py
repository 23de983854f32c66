"""Front-ends that turn Python class definitions into raw builder schemas.

Two sources are supported:

* source text, parsed with :mod:`ast` (used by the CLI), and
* live classes, introspected at runtime (used by :func:`with_builder`).

Neither resolves types: annotations are passed on as written, and the
generator classifies them by shape.
"""

from __future__ import annotations

import ast
import dataclasses
import enum
import inspect
import textwrap
import types
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    ForwardRef,
    List,
    Literal,
    Optional,
    Union,
    get_args,
    get_origin,
)

from .codegen.core.config import BUILDER_NAMESPACE
from .codegen.core.location import SourceLocation
from .codegen.core.schema import Annotation, DefinitionKind, RawDefinition, RawField
from .logging_config import get_logger

logger = get_logger(__name__)

ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}
TUPLE_BASES = {"tuple", "Tuple"}
GENERIC_BASES = {"Generic", "Protocol"}
# Bases that add no constructor of their own
BARE_BASES = GENERIC_BASES | {"object"}
# Annotations that do not become constructor fields
SKIPPED_FIELD_TYPES = {"ClassVar", "InitVar", "KW_ONLY"}


class FrontendError(Exception):
    """Raised when source text cannot be parsed into definitions."""

    pass


@dataclass(frozen=True)
class Unevaluated:
    """An annotation value that was not a literal in the source."""

    source: str

    def __repr__(self) -> str:
        return f"<non-literal {self.source}>"


# Source text front-end


def _dotted_name(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = _dotted_name(node.value)
        return f"{base}.{node.attr}" if base else node.attr
    if isinstance(node, ast.Subscript):
        return _dotted_name(node.value)
    if isinstance(node, ast.Call):
        return _dotted_name(node.func)
    return None


def _last_segment(name: Optional[str]) -> Optional[str]:
    return name.rsplit(".", 1)[-1] if name else None


def _annotation_source(annotation: ast.AST) -> str:
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        return annotation.value
    return ast.unparse(annotation)


def _is_skipped(type_text: str) -> bool:
    head = type_text.split("[", 1)[0].strip()
    return head.rsplit(".", 1)[-1] in SKIPPED_FIELD_TYPES


def _literal(node: ast.AST) -> Any:
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError):
        return Unevaluated(ast.unparse(node))


def _mapping_items(node: ast.AST) -> Optional[List[tuple]]:
    """(anchor, key, value) for ``{...}`` displays and ``dict(...)`` calls."""
    if isinstance(node, ast.Dict):
        return [
            (value, None, value) if key is None else (key, _literal(key), value)
            for key, value in zip(node.keys, node.values)
        ]
    if (
        isinstance(node, ast.Call)
        and _dotted_name(node.func) == "dict"
        and not node.args
    ):
        return [(kw, kw.arg, kw.value) for kw in node.keywords]
    return None


class _SourceParser:
    def __init__(
        self, source: str, filename: str, line_offset: int = 0, column_offset: int = 0
    ):
        self.source = source
        self.filename = filename
        self.line_offset = line_offset
        self.column_offset = column_offset

    def location(self, node: ast.AST) -> SourceLocation:
        return SourceLocation(
            self.filename,
            node.lineno + self.line_offset,
            node.col_offset + self.column_offset,
        )

    def parse(self) -> List[RawDefinition]:
        try:
            tree = ast.parse(self.source, filename=self.filename)
        except SyntaxError as e:
            raise FrontendError(f"{self.filename}:{e.lineno}: {e.msg}") from e

        return [
            self.definition(node)
            for node in tree.body
            if isinstance(node, ast.ClassDef)
        ]

    def definition(self, node: ast.ClassDef) -> RawDefinition:
        base_names = [_dotted_name(base) for base in node.bases]
        last_segments = {_last_segment(name) for name in base_names}

        type_params = [p.name for p in getattr(node, "type_params", [])]
        for base in node.bases:
            if isinstance(base, ast.Subscript) and _last_segment(
                _dotted_name(base)
            ) in GENERIC_BASES:
                type_params.append(ast.unparse(base.slice))

        fields = [
            self.field(stmt)
            for stmt in node.body
            if isinstance(stmt, ast.AnnAssign)
            and isinstance(stmt.target, ast.Name)
            and not _is_skipped(_annotation_source(stmt.annotation))
        ]

        if last_segments & ENUM_BASES:
            kind = DefinitionKind.VARIANT
        elif last_segments & TUPLE_BASES:
            kind = DefinitionKind.TUPLE
        elif not fields:
            kind = DefinitionKind.UNIT
        elif not self.takes_keywords(node, fields):
            kind = DefinitionKind.PLAIN
        else:
            kind = DefinitionKind.RECORD

        return RawDefinition(
            name=node.name,
            kind=kind,
            fields=fields,
            location=self.location(node),
            type_params=type_params,
            decorators=[_dotted_name(d) or "" for d in node.decorator_list],
        )

    def takes_keywords(self, node: ast.ClassDef, fields: List[RawField]) -> bool:
        """Whether ``Name(field=value, ...)`` can construct the class."""
        # Anything that may add a constructor out of sight is taken on trust
        if node.decorator_list or node.keywords:
            return True
        if any(_last_segment(_dotted_name(b)) not in BARE_BASES for b in node.bases):
            return True

        init = next(
            (
                stmt
                for stmt in node.body
                if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef))
                and stmt.name == "__init__"
            ),
            None,
        )
        if init is None:
            return False
        if init.args.kwarg is not None:
            return True
        names = {a.arg for a in init.args.args[1:] + init.args.kwonlyargs}
        return all(f.name in names for f in fields)

    def field(self, stmt: ast.AnnAssign) -> RawField:
        return RawField(
            name=stmt.target.id,
            type=_annotation_source(stmt.annotation),
            annotations=self.annotations(stmt.value),
            location=self.location(stmt),
        )

    def annotations(self, value: Optional[ast.AST]) -> List[Annotation]:
        """Builder annotations from ``field(metadata=...)``, dict display or call."""
        if not isinstance(value, ast.Call):
            return []
        if _last_segment(_dotted_name(value.func)) != "field":
            return []

        metadata = next(
            (kw.value for kw in value.keywords if kw.arg == "metadata"), None
        )
        if metadata is None:
            return []

        found = []
        for _, key, entry in _mapping_items(metadata) or ():
            if key != BUILDER_NAMESPACE:
                continue
            items = _mapping_items(entry)
            if items is None:
                found.append(
                    Annotation(
                        namespace=BUILDER_NAMESPACE,
                        value=_literal(entry),
                        location=self.location(entry),
                    )
                )
                continue
            for anchor, sub_key, sub_value in items:
                found.append(
                    Annotation(
                        namespace=BUILDER_NAMESPACE,
                        key=sub_key,
                        value=_literal(sub_value),
                        location=self.location(anchor),
                    )
                )
        return found


def parse_source(source: str, filename: str = "<string>") -> List[RawDefinition]:
    """
    Parse the top-level class definitions of a module.

    Args:
        source: Python source text
        filename: Name used in source locations

    Returns:
        One RawDefinition per top-level class, in source order

    Raises:
        FrontendError: If the source is not valid Python
    """
    definitions = _SourceParser(source, filename).parse()
    logger.debug("Parsed %d class definitions from %s", len(definitions), filename)
    return definitions


def find_definition(
    source: str, name: str, filename: str = "<string>"
) -> RawDefinition:
    """Parse ``source`` and return the top-level class called ``name``."""
    for definition in parse_source(source, filename):
        if definition.name == name:
            return definition
    raise FrontendError(f"No class named '{name}' in {filename}")


# Live class front-end


def annotation_text(tp: Any) -> str:
    """Render a runtime annotation object as type expression text."""
    if isinstance(tp, str):
        return tp
    if isinstance(tp, ForwardRef):
        return tp.__forward_arg__
    if tp is None or tp is type(None):
        return "None"
    if tp is Ellipsis:
        return "..."
    if isinstance(tp, list):
        # Callable parameter list
        return "[" + ", ".join(annotation_text(a) for a in tp) + "]"

    origin = get_origin(tp)
    if origin is None:
        if isinstance(tp, type):
            name = tp.__qualname__
            return tp.__name__ if "<" in name else name
        return repr(tp).lstrip("~")

    args = get_args(tp)
    if origin is Union or origin is types.UnionType:
        return " | ".join(annotation_text(a) for a in args)
    if origin is Literal:
        return f"Literal[{', '.join(repr(a) for a in args)}]"

    base = getattr(tp, "__name__", None) or annotation_text(origin)
    if not args:
        return base
    return f"{base}[{', '.join(annotation_text(a) for a in args)}]"


def _metadata_annotations(
    metadata: Any, location: SourceLocation
) -> List[Annotation]:
    if BUILDER_NAMESPACE not in metadata:
        return []
    entry = metadata[BUILDER_NAMESPACE]
    if isinstance(entry, dict):
        return [
            Annotation(BUILDER_NAMESPACE, key, value, location)
            for key, value in entry.items()
        ]
    return [Annotation(BUILDER_NAMESPACE, None, entry, location)]


def _class_source(cls: type) -> Optional[RawDefinition]:
    """The class as parsed from its own source, for precise locations."""
    try:
        filename = inspect.getsourcefile(cls) or "<unknown>"
        lines, start = inspect.getsourcelines(cls)
    except (OSError, TypeError):
        return None

    first = lines[0]
    indent = len(first) - len(first.lstrip())
    source = textwrap.dedent("".join(lines))
    parser = _SourceParser(source, filename, start - 1, indent)
    try:
        parsed = parser.parse()
    except FrontendError:
        return None
    return parsed[0] if parsed else None


def _live_fields(cls: type) -> List[tuple]:
    """(name, annotation, metadata) for every constructor field."""
    if dataclasses.is_dataclass(cls):
        return [
            (f.name, f.type, f.metadata)
            for f in dataclasses.fields(cls)
            if f.init
        ]
    annotations = inspect.get_annotations(cls)
    return [
        (name, tp, {})
        for name, tp in annotations.items()
        if not _is_skipped(annotation_text(tp))
    ]


def _takes_keywords(cls: type, names: List[str]) -> bool:
    if dataclasses.is_dataclass(cls) or hasattr(cls, "_fields"):
        return True
    if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
        return False
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return True

    parameters = signature.parameters.values()
    if any(p.kind is p.VAR_KEYWORD for p in parameters):
        return True
    keywords = {
        p.name
        for p in parameters
        if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
    }
    return all(name in keywords for name in names)


def describe_class(cls: type) -> RawDefinition:
    """
    Describe a live class as a RawDefinition.

    Fields, types and metadata come from the class object; source
    positions come from its source file when that can be found.
    """
    parsed = _class_source(cls)
    location = parsed.location if parsed else SourceLocation.unknown()
    parsed_fields: Dict[str, RawField] = (
        {f.name: f for f in parsed.fields if f.name} if parsed else {}
    )

    if issubclass(cls, enum.Enum):
        kind = DefinitionKind.VARIANT
    elif issubclass(cls, tuple) and not hasattr(cls, "_fields"):
        kind = DefinitionKind.TUPLE
    else:
        kind = DefinitionKind.RECORD

    fields = []
    if kind is DefinitionKind.RECORD:
        for name, tp, metadata in _live_fields(cls):
            source_field = parsed_fields.get(name)
            field_location = source_field.location if source_field else location
            annotations = _metadata_annotations(metadata, field_location)
            if source_field and source_field.annotations:
                # Same entries, but pinned to where they are written
                annotations = [
                    dataclasses.replace(a, location=s.location)
                    for a, s in zip(annotations, source_field.annotations)
                ] + annotations[len(source_field.annotations):]
            fields.append(
                RawField(
                    name=name,
                    type=annotation_text(tp),
                    annotations=annotations,
                    location=field_location,
                )
            )
        if not fields:
            kind = DefinitionKind.UNIT
        elif not _takes_keywords(cls, [f.name for f in fields]):
            kind = DefinitionKind.PLAIN

    type_params = [annotation_text(p) for p in getattr(cls, "__parameters__", ())]

    return RawDefinition(
        name=cls.__name__,
        kind=kind,
        fields=fields,
        location=location,
        type_params=type_params,
    )
