"""
Setter synthesis for builder classes.

Turns classified fields into the method set the emitter renders. Every
setter mutates the builder in place and returns it, so calls chain.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from .config import BUILDER_NAMESPACE
from .errors import MethodCollisionError
from .naming import is_reserved_member, storage_attribute
from .types import BuilderSchema, ClassifiedField, FieldKind
from ...logging_config import get_logger

logger = get_logger(__name__)


class SetterKind(Enum):
    """What a setter does to the field's storage."""

    ASSIGN = "assign"  # overwrite the pending value
    ACCUMULATE = "accumulate"  # append one element
    REPLACE_ALL = "replace_all"  # replace the whole sequence


@dataclass(frozen=True)
class SetterSpec:
    """One method of the generated builder."""

    method_name: str
    field_name: str
    kind: SetterKind
    param_name: str
    param_type: str

    @property
    def storage(self) -> str:
        return storage_attribute(self.field_name)


@dataclass
class FieldMethods:
    """A classified field with the setters synthesized for it."""

    classified: ClassifiedField
    setters: List[SetterSpec] = field(default_factory=list)

    @property
    def suppressed_replace_all(self) -> bool:
        """True when the accumulator took over the field's own name."""
        return (
            self.classified.kind == FieldKind.REPEATED
            and self.classified.classification.accumulator == self.classified.name
        )


def setters_for(classified: ClassifiedField) -> List[SetterSpec]:
    """Setters for one field, ignoring the rest of the builder."""
    name = classified.name

    if classified.kind != FieldKind.REPEATED:
        return [
            SetterSpec(
                method_name=name,
                field_name=name,
                kind=SetterKind.ASSIGN,
                param_name="value",
                param_type=classified.inner_text,
            )
        ]

    accumulator = classified.classification.accumulator
    setters = [
        SetterSpec(
            method_name=accumulator,
            field_name=name,
            kind=SetterKind.ACCUMULATE,
            param_name="item",
            param_type=classified.inner_text,
        )
    ]
    # Same name would mean two methods with incompatible semantics; the
    # single-element form wins.
    if accumulator != name:
        setters.append(
            SetterSpec(
                method_name=name,
                field_name=name,
                kind=SetterKind.REPLACE_ALL,
                param_name="values",
                param_type=classified.type_text,
            )
        )
    return setters


class MethodSynthesizer:
    """Computes a collision-free method set for a builder."""

    def synthesize(
        self, schema: BuilderSchema
    ) -> Tuple[List[FieldMethods], List[MethodCollisionError]]:
        """
        Synthesize setters for every field of the schema.

        Field names own their setter names; accumulator names are claimed
        in declaration order. A field whose methods would clash with a
        reserved member or an earlier claim is left out and reported.

        Returns:
            Tuple of (per-field method sets, collision errors)
        """
        field_owners = {f.name: f.name for f in schema.fields}
        claimed: Dict[str, str] = {}
        results = []
        errors = []

        for classified in schema.fields:
            try:
                setters = setters_for(classified)
                for setter in setters:
                    self._check_name(setter, classified, field_owners, claimed)
            except MethodCollisionError as e:
                logger.debug("Field '%s' rejected: %s", classified.name, e.message)
                errors.append(e)
                continue

            for setter in setters:
                claimed[setter.method_name] = classified.name
            results.append(FieldMethods(classified, setters))

        logger.debug(
            "Synthesized %d setters for '%s'",
            sum(len(r.setters) for r in results),
            schema.builder_name,
        )
        return results, errors

    def _check_name(self, setter, classified, field_owners, claimed) -> None:
        name = setter.method_name
        is_accumulator = setter.kind == SetterKind.ACCUMULATE
        annotations = classified.descriptor.annotations_in(BUILDER_NAMESPACE)
        location = classified.descriptor.location
        if is_accumulator and annotations:
            location = annotations[0].location

        if is_reserved_member(name):
            what = "accumulator" if is_accumulator else "field"
            raise MethodCollisionError(
                f"{what} name '{name}' would shadow a builder member; "
                f"'build', 'try_build' and names starting with '_' are reserved",
                location,
                classified.name,
            )

        owner = claimed.get(name) or field_owners.get(name)
        if owner is not None and owner != classified.name:
            raise MethodCollisionError(
                f"accumulator '{name}' of field '{classified.name}' collides "
                f"with the setter of field '{owner}'",
                location,
                classified.name,
            )
