"""Per-tool field declarations.

A tool declares its parameters once as an ordered mapping of name → FieldSpec.
Validation goes through a pydantic TypeAdapter per field, so any annotation
pydantic understands works as a validator (``str``, ``bool``, ``Literal[...]``,
``list[str]``, ``Annotated[int, Field(ge=1)]``, the ``Uuid`` alias below, ...).

Two views come out of one declaration:

- internal: every field, used for merge + validation;
- public: fields an agent must pass explicitly (no session-backed default),
  used to describe the tool to callers.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, Field, TypeAdapter, ValidationError, WithJsonSchema

_UUID_RE = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)


def _check_uuid(value: str) -> str:
    if not _UUID_RE.fullmatch(value):
        raise ValueError("Invalid UUID format")
    return value


Uuid = Annotated[
    str,
    AfterValidator(_check_uuid),
    WithJsonSchema({"type": "string", "format": "uuid"}),
]
NonEmptyStr = Annotated[str, Field(min_length=1)]
EnvMapping = dict[str, str]

MergeMode = Literal["replace", "deep"]


@dataclass(frozen=True)
class FieldSpec:
    """One named parameter.

    session_default: the value may come from session defaults when omitted.
    merge: "deep" merges an explicit mapping over the session mapping key by
    key; anything else (or a non-mapping explicit value) replaces it.
    """

    annotation: Any
    description: str = ""
    session_default: bool = False
    merge: MergeMode = "replace"


def _format_errors(exc: ValidationError) -> str:
    reasons: list[str] = []
    for err in exc.errors(include_url=False):
        msg = err["msg"].removeprefix("Value error, ")
        loc = ".".join(str(part) for part in err["loc"])
        reasons.append(f"{msg} (at {loc})" if loc else msg)
    return "; ".join(reasons)


class FieldSchema:
    """Ordered, immutable set of FieldSpecs with a cached validator per field."""

    def __init__(self, fields: Mapping[str, FieldSpec]) -> None:
        self._fields: dict[str, FieldSpec] = dict(fields)
        self._adapters: dict[str, TypeAdapter[Any]] = {
            name: TypeAdapter(spec.annotation) for name, spec in self._fields.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __getitem__(self, name: str) -> FieldSpec:
        return self._fields[name]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._fields)

    def session_backed(self, *, defaults_enabled: bool = True) -> tuple[str, ...]:
        """Fields that may be filled from session defaults, in declaration order."""
        if not defaults_enabled:
            return ()
        return tuple(n for n, spec in self._fields.items() if spec.session_default)

    def public_names(self, *, defaults_enabled: bool = True) -> tuple[str, ...]:
        backed = set(self.session_backed(defaults_enabled=defaults_enabled))
        return tuple(n for n in self._fields if n not in backed)

    def validate(self, values: Mapping[str, Any]) -> tuple[dict[str, Any], list[str]]:
        """Validate every present field in strict mode: "5" is not an int.

        Returns (validated values, violations). Violations are
        "<field>: <reason>" strings in declaration order; all are collected.
        """
        validated: dict[str, Any] = {}
        violations: list[str] = []
        for name, adapter in self._adapters.items():
            if name not in values:
                continue
            try:
                validated[name] = adapter.validate_python(values[name], strict=True)
            except ValidationError as e:
                violations.append(f"{name}: {_format_errors(e)}")
        return validated, violations

    def property_schema(self, name: str) -> dict[str, Any]:
        """JSON Schema for one field, with its description attached."""
        schema = self._adapters[name].json_schema()
        description = self._fields[name].description
        if description:
            schema["description"] = description
        return schema

    def json_schema(
        self,
        *,
        required: tuple[str, ...] = (),
        public: bool = True,
        defaults_enabled: bool = True,
    ) -> dict[str, Any]:
        """Object schema over the public (or internal) view."""
        names = self.public_names(defaults_enabled=defaults_enabled) if public else self.names
        return {
            "type": "object",
            "properties": {name: self.property_schema(name) for name in names},
            "required": [name for name in required if name in names],
        }
