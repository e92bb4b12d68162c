"""Tests for the parameter resolution engine.

Covers:
- blank/None normalization
- merge precedence (explicit over session) and session fallback
- exclusive pairs regardless of value origin
- AllOf / OneOf outcomes and the two MissingRequired presentations
- batched field validation
- no exception ever escapes resolve_parameters()
"""

from __future__ import annotations

from typing import Annotated, Any

import pytest
from pydantic import AfterValidator

from src.infra.errors import DiagnosticKind
from src.tools.requirements import AllOf, ExclusivePair, OneOf
from src.tools.resolution import (
    Diagnostic,
    ParamSource,
    ResolvedParameters,
    merge_with_defaults,
    normalize_arguments,
    resolve_parameters,
)
from src.tools.schema import EnvMapping, FieldSchema, FieldSpec, NonEmptyStr, Uuid

_UUID = "AAAAAAAA-1111-2222-3333-444444444444"


def _device_schema() -> FieldSchema:
    return FieldSchema(
        {
            "deviceId": FieldSpec(Uuid, session_default=True),
            "bundleId": FieldSpec(str, session_default=True),
        }
    )


_DEVICE_RULES = (AllOf(("deviceId", "bundleId")),)


def _sim_schema() -> FieldSchema:
    return FieldSchema(
        {
            "scheme": FieldSpec(NonEmptyStr, session_default=True),
            "projectPath": FieldSpec(str, session_default=True),
            "workspacePath": FieldSpec(str, session_default=True),
            "simulatorId": FieldSpec(str, session_default=True),
            "simulatorName": FieldSpec(str, session_default=True),
            "env": FieldSpec(EnvMapping, session_default=True, merge="deep"),
            "extraArgs": FieldSpec(list[str]),
        }
    )


def _ok(result: ResolvedParameters | Diagnostic) -> ResolvedParameters:
    assert isinstance(result, ResolvedParameters), result
    return result


def _fail(result: ResolvedParameters | Diagnostic) -> Diagnostic:
    assert isinstance(result, Diagnostic), result
    return result


def _resolve(args: Any, schema: FieldSchema, rules=(), defaults=None, **kw):
    return resolve_parameters(args, schema, rules, defaults or {}, **kw)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class TestNormalize:
    @pytest.mark.parametrize("blank", ["", "   ", "\t\n", None])
    def test_blank_values_dropped(self, blank) -> None:
        assert normalize_arguments({"scheme": blank, "keep": "x"}) == {"keep": "x"}

    def test_non_string_falsy_values_kept(self) -> None:
        args = {"flag": False, "count": 0, "items": []}
        assert normalize_arguments(args) == args

    def test_idempotent(self) -> None:
        args = {"a": "", "b": " v ", "c": None, "d": 1}
        once = normalize_arguments(args)
        assert normalize_arguments(once) == once

    @pytest.mark.parametrize("blank", ["", "   "])
    def test_blank_explicit_does_not_defeat_default(self, blank) -> None:
        result = _ok(
            _resolve({"scheme": blank}, _sim_schema(), defaults={"scheme": "FromSession"})
        )
        assert result["scheme"] == "FromSession"
        assert result.source("scheme") is ParamSource.session

    def test_blank_explicit_same_as_not_provided(self) -> None:
        defaults = {"scheme": "App"}
        with_blank = _ok(_resolve({"scheme": "  "}, _sim_schema(), defaults=defaults))
        without = _ok(_resolve({}, _sim_schema(), defaults=defaults))
        assert with_blank.as_dict() == without.as_dict()


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


class TestMerge:
    def test_session_default_fills_missing(self) -> None:
        result = _ok(_resolve({}, _sim_schema(), defaults={"scheme": "App"}))
        assert result["scheme"] == "App"

    def test_explicit_wins_over_session(self) -> None:
        result = _ok(
            _resolve({"scheme": "FromArgs"}, _sim_schema(), defaults={"scheme": "Default"})
        )
        assert result["scheme"] == "FromArgs"
        assert result.source("scheme") is ParamSource.explicit

    def test_only_session_backed_fields_merge(self) -> None:
        result = _ok(_resolve({}, _sim_schema(), defaults={"extraArgs": ["-quiet"]}))
        assert "extraArgs" not in result

    def test_undeclared_defaults_ignored(self) -> None:
        result = _ok(_resolve({}, _sim_schema(), defaults={"bundleId": "com.x"}))
        assert "bundleId" not in result

    def test_blank_session_value_is_absent(self) -> None:
        result = _ok(_resolve({}, _sim_schema(), defaults={"scheme": " "}))
        assert "scheme" not in result

    def test_unknown_explicit_keys_ignored_and_reported(self) -> None:
        result = _ok(_resolve({"scheme": "A", "bogus": 1}, _sim_schema()))
        assert "bogus" not in result
        assert result.ignored == ("bogus",)

    def test_deep_merge_for_mapping_fields(self) -> None:
        result = _ok(
            _resolve(
                {"env": {"DEBUG": "true", "VERBOSE": "0"}},
                _sim_schema(),
                defaults={"env": {"API_KEY": "abc123", "VERBOSE": "1"}},
            )
        )
        assert result["env"] == {"API_KEY": "abc123", "DEBUG": "true", "VERBOSE": "0"}

    def test_deep_merge_does_not_merge_non_mapping(self) -> None:
        result = _fail(
            _resolve(
                {"env": ["not", "a", "record"]},
                _sim_schema(),
                defaults={"env": {"API_KEY": "abc123"}},
            )
        )
        assert result.kind is DiagnosticKind.field_validation_failed
        assert "Parameter validation failed" in result.message
        assert "env:" in result.message

    def test_defaults_disabled_ignores_store(self) -> None:
        merged, sources = merge_with_defaults(
            {}, {"scheme": "App"}, _sim_schema(), defaults_enabled=False
        )
        assert merged == {}
        assert sources == {}


# ---------------------------------------------------------------------------
# Exclusive pairs
# ---------------------------------------------------------------------------


class TestExclusivePairs:
    _rules = (ExclusivePair("simulatorId", "simulatorName"),)

    def test_one_explicit_one_session(self) -> None:
        result = _fail(
            _resolve(
                {"simulatorId": "SIM-1"},
                _sim_schema(),
                self._rules,
                defaults={"simulatorName": "iPhone 16"},
            )
        )
        assert result.kind is DiagnosticKind.mutually_exclusive
        assert "simulatorId" in result.message
        assert "simulatorName" in result.message
        assert result.fields == ("simulatorId", "simulatorName")

    def test_both_explicit(self) -> None:
        result = _fail(
            _resolve(
                {"simulatorId": "SIM-1", "simulatorName": "iPhone 16"},
                _sim_schema(),
                self._rules,
            )
        )
        assert result.kind is DiagnosticKind.mutually_exclusive
        assert "Parameter validation failed" in result.message
        assert "Mutually exclusive parameters provided" in result.message

    def test_both_from_session(self) -> None:
        result = _fail(
            _resolve(
                {},
                _sim_schema(),
                self._rules,
                defaults={"simulatorId": "SIM-1", "simulatorName": "iPhone 16"},
            )
        )
        assert result.kind is DiagnosticKind.mutually_exclusive

    def test_explicit_none_does_not_collide_with_session(self) -> None:
        result = _ok(
            _resolve(
                {"simulatorName": None},
                _sim_schema(),
                self._rules,
                defaults={"simulatorId": "SIM-1"},
            )
        )
        assert result["simulatorId"] == "SIM-1"
        assert "simulatorName" not in result

    def test_checked_before_allof(self) -> None:
        rules = (AllOf(("scheme",)), *self._rules)
        result = _fail(
            _resolve({"simulatorId": "a", "simulatorName": "b"}, _sim_schema(), rules)
        )
        assert result.kind is DiagnosticKind.mutually_exclusive


# ---------------------------------------------------------------------------
# AllOf
# ---------------------------------------------------------------------------


class TestAllOf:
    def test_zero_explicit_args_asks_for_session_defaults(self) -> None:
        result = _fail(_resolve({}, _device_schema(), _DEVICE_RULES))
        assert result.kind is DiagnosticKind.missing_required
        assert "session defaults" in result.message
        assert "session_set_defaults" in result.message
        assert "deviceId" in result.message
        assert "bundleId" in result.message

    def test_partial_explicit_args_names_missing_field(self) -> None:
        result = _fail(_resolve({"deviceId": _UUID}, _device_schema(), _DEVICE_RULES))
        assert result.kind is DiagnosticKind.missing_required
        assert result.message.startswith("Parameter validation failed")
        assert "bundleId" in result.message
        assert "Missing required session defaults" not in result.message
        assert result.fields == ("bundleId",)

    def test_only_blank_args_count_as_zero_explicit(self) -> None:
        result = _fail(_resolve({"deviceId": "  "}, _device_schema(), _DEVICE_RULES))
        assert "Missing required session defaults" in result.message

    def test_undeclared_args_count_as_zero_explicit(self) -> None:
        result = _fail(_resolve({"other": "x"}, _device_schema(), _DEVICE_RULES))
        assert "Missing required session defaults" in result.message

    def test_custom_message_used(self) -> None:
        rules = (AllOf(("scheme",), "scheme is required"),)
        result = _fail(_resolve({"projectPath": "/p"}, _sim_schema(), rules))
        assert "scheme is required" in result.message

    def test_defaults_disabled_wording(self) -> None:
        result = _fail(
            _resolve({}, _device_schema(), _DEVICE_RULES, defaults_enabled=False)
        )
        assert result.message.startswith("Missing required parameters")
        assert "session" not in result.message

    def test_explicit_only_fields_never_get_session_hint(self) -> None:
        schema = FieldSchema({"packagePath": FieldSpec(str)})
        result = _fail(_resolve({}, schema, (AllOf(("packagePath",)),)))
        assert result.message.startswith("Parameter validation failed")
        assert "session" not in result.message
        assert "packagePath" in result.message

    def test_zero_args_without_backed_fields_uses_explicit_wording(self) -> None:
        schema = FieldSchema({"x": FieldSpec(str), "y": FieldSpec(str)})
        result = _fail(_resolve({}, schema, (AllOf(("x", "y")),)))
        assert result.message == (
            "Parameter validation failed\n"
            "x, y are required\n"
            "Missing required parameter(s): x, y"
        )

    def test_satisfied_by_session(self) -> None:
        result = _ok(
            _resolve(
                {},
                _device_schema(),
                _DEVICE_RULES,
                defaults={"deviceId": _UUID, "bundleId": "com.example.App"},
            )
        )
        assert result.as_dict() == {"deviceId": _UUID, "bundleId": "com.example.App"}


# ---------------------------------------------------------------------------
# OneOf
# ---------------------------------------------------------------------------


class TestOneOf:
    _rules = (OneOf(("projectPath", "workspacePath"), "Provide a project or workspace"),)

    def test_neither_is_missing_required(self) -> None:
        result = _fail(_resolve({"scheme": "App"}, _sim_schema(), self._rules))
        assert result.kind is DiagnosticKind.missing_required
        assert "Provide a project or workspace" in result.message

    def test_neither_with_zero_args_asks_for_session_defaults(self) -> None:
        result = _fail(_resolve({}, _sim_schema(), self._rules))
        assert "Missing required session defaults" in result.message

    @pytest.mark.parametrize("field", ["projectPath", "workspacePath"])
    def test_exactly_one_succeeds(self, field) -> None:
        result = _ok(_resolve({field: "/x"}, _sim_schema(), self._rules))
        assert result[field] == "/x"

    def test_both_is_mutually_exclusive(self) -> None:
        result = _fail(
            _resolve({"projectPath": "/a", "workspacePath": "/b"}, _sim_schema(), self._rules)
        )
        assert result.kind is DiagnosticKind.mutually_exclusive
        assert "projectPath" in result.message
        assert "workspacePath" in result.message

    def test_both_via_explicit_and_session(self) -> None:
        result = _fail(
            _resolve(
                {"workspacePath": "/b"},
                _sim_schema(),
                self._rules,
                defaults={"projectPath": "/a"},
            )
        )
        assert result.kind is DiagnosticKind.mutually_exclusive

    def test_default_message_lists_options(self) -> None:
        rules = (OneOf(("simulatorId", "simulatorName")),)
        result = _fail(_resolve({"scheme": "A"}, _sim_schema(), rules))
        assert "Provide one of: simulatorId, simulatorName" in result.message


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


class TestFieldValidation:
    def test_invalid_explicit_with_valid_session(self) -> None:
        result = _fail(
            _resolve(
                {"deviceId": "x"},
                _device_schema(),
                _DEVICE_RULES,
                defaults={"bundleId": "com.example.App"},
            )
        )
        assert result.kind is DiagnosticKind.field_validation_failed
        assert result.message == "Parameter validation failed\ndeviceId: Invalid UUID format"
        assert result.fields == ("deviceId",)

    def test_violations_are_batched(self) -> None:
        result = _fail(
            _resolve({"deviceId": "x", "bundleId": 42}, _device_schema(), _DEVICE_RULES)
        )
        lines = result.message.splitlines()
        assert lines[0] == "Parameter validation failed"
        assert lines[1].startswith("deviceId: ")
        assert lines[2].startswith("bundleId: ")
        assert result.fields == ("deviceId", "bundleId")

    def test_invalid_session_value_reported(self) -> None:
        result = _fail(
            _resolve(
                {"bundleId": "com.x"},
                _device_schema(),
                _DEVICE_RULES,
                defaults={"deviceId": "stale"},
            )
        )
        assert "deviceId: Invalid UUID format" in result.message

    def test_wrong_type_for_string(self) -> None:
        result = _fail(_resolve({"scheme": 123}, _sim_schema()))
        assert "Parameter validation failed" in result.message

    def test_string_values_not_coerced_to_bool_or_int(self) -> None:
        schema = FieldSchema(
            {
                "useLatestOS": FieldSpec(bool, session_default=True),
                "count": FieldSpec(int),
            }
        )
        result = _fail(_resolve({"useLatestOS": "no", "count": "5"}, schema))
        assert result.kind is DiagnosticKind.field_validation_failed
        assert result.fields == ("useLatestOS", "count")

    def test_uuid_with_trailing_newline_rejected(self) -> None:
        result = _fail(
            _resolve({"deviceId": _UUID + "\n", "bundleId": "com.x"}, _device_schema())
        )
        assert result.message == (
            "Parameter validation failed\ndeviceId: Invalid UUID format"
        )

    def test_rules_checked_before_field_validation(self) -> None:
        result = _fail(_resolve({"deviceId": "x"}, _device_schema(), _DEVICE_RULES))
        assert result.kind is DiagnosticKind.missing_required


# ---------------------------------------------------------------------------
# Never raises
# ---------------------------------------------------------------------------


class TestNeverRaises:
    @pytest.mark.parametrize("bad", [["a"], "scheme=App", 42])
    def test_non_mapping_arguments(self, bad) -> None:
        result = _fail(_resolve(bad, _sim_schema()))
        assert result.kind is DiagnosticKind.field_validation_failed
        assert "Parameter validation failed" in result.message

    def test_none_arguments_mean_empty(self) -> None:
        result = _ok(_resolve(None, _sim_schema(), defaults={"scheme": "App"}))
        assert result["scheme"] == "App"

    def test_crashing_validator_becomes_diagnostic(self) -> None:
        def _boom(value: str) -> str:
            raise RuntimeError("validator exploded")

        schema = FieldSchema({"x": FieldSpec(Annotated[str, AfterValidator(_boom)])})
        result = _fail(_resolve({"x": "v"}, schema))
        assert result.kind is DiagnosticKind.field_validation_failed
        assert "validator exploded" in result.message

    def test_diagnostic_response_envelope(self) -> None:
        response = _fail(_resolve({}, _device_schema(), _DEVICE_RULES)).to_response()
        wire = response.to_wire()
        assert wire["isError"] is True
        assert wire["content"][0]["type"] == "text"
        assert wire["content"][0]["text"]
