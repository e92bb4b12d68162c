"""Parameter resolution & validation engine.

resolve_parameters() turns an untyped argument bag into either
ResolvedParameters or a Diagnostic, in one synchronous pass:

    normalize blanks → merge session defaults → exclusive pairs → AllOf
    → OneOf → per-field validation

It never raises: every failure, expected or not, comes back as a Diagnostic.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from src.infra.errors import DiagnosticKind, ParameterError
from src.tools.requirements import (
    HEADER_VALIDATION,
    MissingPresentation,
    Requirement,
    evaluate_requirements,
)
from src.tools.response import ToolResponse, error_response
from src.tools.schema import FieldSchema

logger = structlog.get_logger()


class ParamSource(StrEnum):
    explicit = "explicit"
    session = "session"


@dataclass(frozen=True)
class Diagnostic:
    """A rejected call: what went wrong and which fields are involved."""

    kind: DiagnosticKind
    message: str
    fields: tuple[str, ...] = ()

    def to_response(self) -> ToolResponse:
        return error_response(self.message)


class ResolvedParameters(Mapping[str, Any]):
    """Read-only, validated parameters for one call.

    Only present fields are keys; optional fields that resolved to nothing
    are simply absent, so logic code uses ``params.get(name, fallback)``.
    """

    def __init__(
        self,
        values: Mapping[str, Any],
        sources: Mapping[str, ParamSource],
        *,
        ignored: Sequence[str] = (),
    ) -> None:
        self._values = dict(values)
        self._sources = dict(sources)
        self.ignored = tuple(ignored)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ResolvedParameters({self._values!r})"

    def source(self, name: str) -> ParamSource:
        return self._sources[name]

    @property
    def sources(self) -> dict[str, ParamSource]:
        return dict(self._sources)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)


def is_blank(value: Any) -> bool:
    """None and empty/whitespace-only strings count as not provided."""
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_arguments(arguments: Mapping[str, Any]) -> dict[str, Any]:
    return {name: value for name, value in arguments.items() if not is_blank(value)}


def merge_with_defaults(
    explicit: Mapping[str, Any],
    defaults: Mapping[str, Any],
    schema: FieldSchema,
    *,
    defaults_enabled: bool = True,
) -> tuple[dict[str, Any], dict[str, ParamSource]]:
    """Explicit value, else session default (session-backed fields only), else absent."""
    backed = set(schema.session_backed(defaults_enabled=defaults_enabled))
    merged: dict[str, Any] = {}
    sources: dict[str, ParamSource] = {}
    for name in schema:
        stored = defaults.get(name) if name in backed else None
        if name in explicit:
            value = explicit[name]
            if (
                schema[name].merge == "deep"
                and isinstance(value, Mapping)
                and isinstance(stored, Mapping)
            ):
                value = {**stored, **value}
            merged[name] = value
            sources[name] = ParamSource.explicit
        elif not is_blank(stored):
            merged[name] = stored
            sources[name] = ParamSource.session
    return merged, sources


def _presentation(explicit_fields: Sequence[str], defaults_enabled: bool) -> MissingPresentation:
    if not defaults_enabled:
        return MissingPresentation.parameters_only
    if not explicit_fields:
        return MissingPresentation.session_defaults
    return MissingPresentation.explicit


def resolve_parameters(
    arguments: Any,
    schema: FieldSchema,
    rules: Sequence[Requirement],
    session_defaults: Mapping[str, Any],
    *,
    defaults_enabled: bool = True,
) -> ResolvedParameters | Diagnostic:
    """Merge, check and validate one call's arguments.

    arguments is whatever the caller sent; None means no arguments.
    session_defaults should be a snapshot (SessionStore.get_all()).
    """
    try:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            return Diagnostic(
                DiagnosticKind.field_validation_failed,
                f"{HEADER_VALIDATION}\narguments: Input should be an object "
                f"(got {type(arguments).__name__})",
            )

        explicit = normalize_arguments(arguments)
        explicit_fields = [name for name in explicit if name in schema]
        ignored = [name for name in explicit if name not in schema]

        merged, sources = merge_with_defaults(
            explicit, session_defaults, schema, defaults_enabled=defaults_enabled
        )

        evaluate_requirements(
            rules,
            merged.keys(),
            presentation=_presentation(explicit_fields, defaults_enabled),
            session_backed=schema.session_backed(defaults_enabled=defaults_enabled),
        )

        validated, violations = schema.validate(merged)
        if violations:
            return Diagnostic(
                DiagnosticKind.field_validation_failed,
                "\n".join([HEADER_VALIDATION, *violations]),
                tuple(v.split(":", 1)[0] for v in violations),
            )
        return ResolvedParameters(validated, sources, ignored=ignored)

    except ParameterError as e:
        return Diagnostic(e.kind, str(e), e.fields)
    except Exception as e:
        logger.exception("parameter_resolution_crashed")
        return Diagnostic(
            DiagnosticKind.field_validation_failed,
            f"{HEADER_VALIDATION}\n{e}",
        )
