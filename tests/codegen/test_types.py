"""Tests for syntactic field classification."""

from __future__ import annotations

import pytest

from fluent_builder.codegen.core import (
    Annotation,
    AnnotationError,
    FieldKind,
    GeneratorConfig,
    SourceLocation,
    TypeClassifier,
    extract_schema,
    parse_type_shape,
    tokenize_type,
)


def _descriptor(defs, name, type_, each=None, **kwargs):
    schema = extract_schema(defs.record("Rec", defs.field(name, type_, each, **kwargs)))
    return schema.fields[0]


def _shape(text):
    return parse_type_shape(tokenize_type(text))


class TestTypeShape:
    def test_dotted_generic(self) -> None:
        shape = _shape("typing.Optional[int]")

        assert shape.path == ("typing", "Optional")
        assert shape.qualifier == "typing"
        assert shape.args == (("int",),)

    def test_nested_arguments_split_at_top_level(self) -> None:
        shape = _shape("dict[str, list[int]]")

        assert shape.args == (("str",), ("list", "[", "int", "]"))

    def test_callable_parameter_list(self) -> None:
        shape = _shape("Callable[[int, str], bool]")

        assert shape.last_segment == "Callable"
        assert len(shape.args) == 2

    def test_trailing_comma_is_ignored(self) -> None:
        assert _shape("list[int,]").args == (("int",),)

    def test_plain_name_has_no_args(self) -> None:
        shape = _shape("str")

        assert shape.path == ("str",)
        assert shape.args is None

    def test_union_members(self) -> None:
        shape = _shape("int | None")

        assert shape.members == (("int",), ("None",))
        assert shape.none_union_inner() == ("int",)
        assert _shape("None | list[str]").none_union_inner() == ("list", "[", "str", "]")
        assert _shape("int | str | None").none_union_inner() is None

    @pytest.mark.parametrize("text", ["list[str]]", "list[str", "[int]", "list[int]x"])
    def test_unrecognized_shapes_are_opaque(self, text) -> None:
        assert _shape(text).path == ()


class TestClassify:
    @pytest.mark.parametrize(
        "type_", ["int", "dict[str, int]", "list[str]", "Union[int, None]", "Optional[int, str]"]
    )
    def test_required(self, defs, type_) -> None:
        descriptor = _descriptor(defs, "value", type_)

        classification = TypeClassifier().classify(descriptor)

        assert classification.kind is FieldKind.REQUIRED
        assert classification.inner == descriptor.type_tokens
        assert classification.accumulator is None

    @pytest.mark.parametrize(
        "type_, inner",
        [
            ("Optional[int]", ("int",)),
            ("typing.Optional[list[str]]", ("list", "[", "str", "]")),
            ("int | None", ("int",)),
            ("None | int", ("int",)),
        ],
    )
    def test_already_optional(self, defs, type_, inner) -> None:
        classification = TypeClassifier().classify(_descriptor(defs, "value", type_))

        assert classification.kind is FieldKind.ALREADY_OPTIONAL
        assert classification.inner == inner

    def test_none_union_can_be_switched_off(self, defs) -> None:
        classifier = TypeClassifier(GeneratorConfig(recognize_none_union=False))

        classification = classifier.classify(_descriptor(defs, "value", "int | None"))

        assert classification.kind is FieldKind.REQUIRED

    @pytest.mark.parametrize(
        "type_, inner",
        [
            ("list[str]", ("str",)),
            ("typing.List[int]", ("int",)),
            ("collections.abc.Sequence[dict[str, int]]", ("dict", "[", "str", ",", "int", "]")),
            ("MutableSequence[Path]", ("Path",)),
        ],
    )
    def test_repeated(self, defs, type_, inner) -> None:
        classification = TypeClassifier().classify(_descriptor(defs, "items", type_, "add"))

        assert classification.kind is FieldKind.REPEATED
        assert classification.inner == inner
        assert classification.accumulator == "add"

    def test_configured_sequence_names(self, defs) -> None:
        config = GeneratorConfig(sequence_types=["Deque"])

        classification = TypeClassifier(config).classify(
            _descriptor(defs, "items", "Deque[int]", "push")
        )

        assert classification.kind is FieldKind.REPEATED
        assert classification.inner == ("int",)

    def test_other_namespaces_are_ignored(self, defs) -> None:
        foreign = Annotation("serde", "rename", "xs", SourceLocation("models.py", 2, 30))
        descriptor = _descriptor(defs, "items", "list[str]", annotations=[foreign])

        assert TypeClassifier().classify(descriptor).kind is FieldKind.REQUIRED


class TestAnnotationErrors:
    def _error(self, descriptor) -> AnnotationError:
        with pytest.raises(AnnotationError) as excinfo:
            TypeClassifier().classify(descriptor)
        return excinfo.value

    def test_non_sequence_type(self, defs) -> None:
        error = self._error(_descriptor(defs, "args", "dict[str, int]", "arg"))

        assert "cannot be accumulated" in error.message
        assert "list[T]" in error.message
        assert error.field_name == "args"
        assert error.location == SourceLocation("models.py", 2, 40)

    @pytest.mark.parametrize("type_", ["Optional[list[str]]", "list[str] | None"])
    def test_optional_wrapped_sequence(self, defs, type_) -> None:
        error = self._error(_descriptor(defs, "args", type_, "arg"))

        assert "optional-wrapped sequences cannot be accumulated" in error.message

    def test_sequence_with_two_arguments(self, defs) -> None:
        error = self._error(_descriptor(defs, "args", "list[str, int]", "arg"))

        assert "cannot be accumulated" in error.message

    @pytest.mark.parametrize("value", ["not valid", "class", "", 3, None])
    def test_non_identifier_accumulator(self, defs, value) -> None:
        location = SourceLocation("models.py", 2, 40)
        annotation = Annotation("builder", "each", value, location)
        descriptor = _descriptor(defs, "args", "list[str]", annotations=[annotation])

        error = self._error(descriptor)

        assert "must name a method with a valid identifier" in error.message

    def test_unknown_key(self, defs) -> None:
        annotation = Annotation("builder", "every", "arg", SourceLocation("m.py", 9, 12))
        descriptor = _descriptor(defs, "args", "list[str]", annotations=[annotation])

        error = self._error(descriptor)

        assert "unknown 'builder' key 'every'" in error.message
        assert error.location == SourceLocation("m.py", 9, 12)

    def test_missing_key(self, defs) -> None:
        annotation = Annotation("builder", None, "arg")
        descriptor = _descriptor(defs, "args", "list[str]", annotations=[annotation])

        error = self._error(descriptor)

        assert "missing the 'each' key" in error.message
        # No position on the annotation: pinned to the field instead
        assert error.location == descriptor.location

    def test_more_than_one_key(self, defs) -> None:
        annotations = [
            Annotation("builder", "each", "arg"),
            Annotation("builder", "each", "item"),
        ]
        descriptor = _descriptor(defs, "args", "list[str]", annotations=annotations)

        assert "takes exactly one key" in self._error(descriptor).message


def test_classify_schema_keeps_siblings(defs) -> None:
    raw = defs.record(
        "Rec",
        defs.field("a", "int"),
        defs.field("b", "str", each="bee"),
        defs.field("c", "Optional[str]"),
    )

    schema, errors = TypeClassifier().classify_schema(extract_schema(raw), "RecBuilder")

    assert schema.builder_name == "RecBuilder"
    assert [f.name for f in schema.fields] == ["a", "c"]
    assert schema.get_field("c").kind is FieldKind.ALREADY_OPTIONAL
    assert schema.get_field("c").inner_text == "str"
    assert [e.field_name for e in errors] == ["b"]


@pytest.mark.parametrize(
    "type_, warns",
    [
        ("mylib.List[int]", True),
        ("mylib.Optional[int]", True),
        ("typing.List[int]", False),
        ("List[int]", False),
        ("mylib.Thing[int]", False),
    ],
)
def test_name_only_match_warning(defs, type_, warns) -> None:
    warning = TypeClassifier().name_only_match_warning(_descriptor(defs, "xs", type_))

    assert (warning is not None) is warns
