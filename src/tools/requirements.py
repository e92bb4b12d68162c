"""Declarative presence rules over merged tool parameters.

The rule set is closed: AllOf, OneOf and ExclusivePair. evaluate_requirements()
is the only interpreter, and the only place missing/exclusive diagnostics are
worded.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from src.infra.errors import DiagnosticKind, ParameterError

SET_DEFAULTS_TOOL = "session_set_defaults"

HEADER_VALIDATION = "Parameter validation failed"
HEADER_SESSION = "Missing required session defaults"
HEADER_PARAMETERS = "Missing required parameters"


@dataclass(frozen=True)
class AllOf:
    """Every listed field must be present after merge."""

    fields: tuple[str, ...]
    message: str | None = None


@dataclass(frozen=True)
class OneOf:
    """Exactly one listed field must be present after merge."""

    fields: tuple[str, ...]
    message: str | None = None


@dataclass(frozen=True)
class ExclusivePair:
    """Both fields present after merge is an error, whatever their origin."""

    first: str
    second: str

    @property
    def fields(self) -> tuple[str, str]:
        return (self.first, self.second)


Requirement = AllOf | OneOf | ExclusivePair


class MissingPresentation(StrEnum):
    """How a MissingRequired diagnostic is phrased.

    session_defaults: the caller sent no explicit arguments, so the answer is
    "here is what to set up". explicit: the caller sent some arguments and
    needs to know which are still missing. parameters_only: session defaults
    are switched off, so no session hint is given.
    """

    session_defaults = "session_defaults"
    explicit = "explicit"
    parameters_only = "parameters_only"


def referenced_fields(rules: Iterable[Requirement]) -> set[str]:
    names: set[str] = set()
    for rule in rules:
        names.update(rule.fields)
    return names


def required_fields(rules: Iterable[Requirement]) -> tuple[str, ...]:
    """Fields named by AllOf rules, first-seen order."""
    seen: dict[str, None] = {}
    for rule in rules:
        if isinstance(rule, AllOf):
            seen.update(dict.fromkeys(rule.fields))
    return tuple(seen)


def _join(names: Sequence[str]) -> str:
    return ", ".join(names)


def _set_defaults_hint(names: Sequence[str]) -> str:
    example = ", ".join(f'"{name}": ...' for name in names)
    return f"Set with: {SET_DEFAULTS_TOOL} {{ {example} }}"


def _missing_error(
    detail: str,
    missing: Sequence[str],
    *,
    presentation: MissingPresentation,
    session_backed: Collection[str],
    one_of: bool = False,
) -> ParameterError:
    listed = f"one of {_join(missing)}" if one_of else _join(missing)
    backed_missing = [name for name in missing if name in session_backed]
    if presentation is MissingPresentation.session_defaults and not backed_missing:
        # Nothing missing could come from session defaults: explicit wording (see DESIGN.md).
        presentation = MissingPresentation.explicit
    if presentation is MissingPresentation.session_defaults:
        hinted = backed_missing[:1] if one_of else backed_missing
        lines = [HEADER_SESSION, detail, _set_defaults_hint(hinted)]
    elif presentation is MissingPresentation.explicit:
        lines = [HEADER_VALIDATION, detail, f"Missing required parameter(s): {listed}"]
        if backed_missing:
            lines.append(
                f"Pass them explicitly or store them with {SET_DEFAULTS_TOOL}."
            )
    else:
        lines = [HEADER_PARAMETERS, detail, f"Missing: {listed}"]
    return ParameterError(
        "\n".join(lines), kind=DiagnosticKind.missing_required, fields=missing
    )


def _exclusive_error(names: Sequence[str]) -> ParameterError:
    return ParameterError(
        f"{HEADER_VALIDATION}\nMutually exclusive parameters provided: "
        f"{_join(names)}. Provide only one.",
        kind=DiagnosticKind.mutually_exclusive,
        fields=names,
    )


def evaluate_requirements(
    rules: Sequence[Requirement],
    present: Collection[str],
    *,
    presentation: MissingPresentation,
    session_backed: Collection[str] = (),
) -> None:
    """Check rules against the set of present field names.

    Order is fixed: exclusive pairs, then AllOf, then OneOf, each in
    declaration order. The first failing rule raises ParameterError.
    """
    for rule in rules:
        if isinstance(rule, ExclusivePair) and rule.first in present and rule.second in present:
            raise _exclusive_error(rule.fields)

    for rule in rules:
        if not isinstance(rule, AllOf):
            continue
        missing = [name for name in rule.fields if name not in present]
        if missing:
            verb = "is" if len(missing) == 1 else "are"
            detail = rule.message or f"{_join(missing)} {verb} required"
            raise _missing_error(
                detail,
                missing,
                presentation=presentation,
                session_backed=session_backed,
            )

    for rule in rules:
        if not isinstance(rule, OneOf):
            continue
        supplied = [name for name in rule.fields if name in present]
        if not supplied:
            detail = rule.message or f"Provide one of: {_join(rule.fields)}"
            raise _missing_error(
                detail,
                rule.fields,
                presentation=presentation,
                session_backed=session_backed,
                one_of=True,
            )
        if len(supplied) > 1:
            raise _exclusive_error(supplied)
