"""Tests for {{namespace.path}} template resolution."""

import pytest

from oidclab.engine.expressions import (
    MISSING,
    Namespace,
    Reference,
    get_nested_value,
    is_falsy,
    parse_expression,
    resolve_template,
    stringify,
)
from oidclab.exceptions import ExpressionError
from oidclab.types import ExecutionContext


# ── Parsing ───────────────────────────────────────────────────────────────────

class TestParseExpression:

    def test_single_reference(self):
        refs = parse_expression("config.tokenEndpoint")
        assert refs == (Reference(Namespace.CONFIG, ("tokenEndpoint",)),)

    def test_whitespace_is_trimmed(self):
        refs = parse_expression("  subFn.auth.assertion ")
        assert refs == (Reference(Namespace.SUB_FN, ("auth", "assertion")),)

    def test_alternation(self):
        refs = parse_expression("state.token || config.token")
        assert [r.namespace for r in refs] == [Namespace.STATE, Namespace.CONFIG]

    def test_unknown_namespace_rejected(self):
        with pytest.raises(ExpressionError) as exc_info:
            parse_expression("secrets.apiKey")
        assert "secrets" in str(exc_info.value)
        assert exc_info.value.expression == "{{secrets.apiKey}}"

    def test_empty_alternative_rejected(self):
        with pytest.raises(ExpressionError):
            parse_expression("config.a || ")

    def test_sub_fn_needs_step_id(self):
        with pytest.raises(ExpressionError):
            parse_expression("subFn")

    def test_bare_config_is_whole_scope(self):
        assert parse_expression("config") == (Reference(Namespace.CONFIG, ()),)


# ── Nested lookup ─────────────────────────────────────────────────────────────

class TestGetNestedValue:

    def test_walks_dicts(self):
        assert get_nested_value({"a": {"b": {"c": 1}}}, ["a", "b", "c"]) == 1

    def test_indexes_lists(self):
        assert get_nested_value({"keys": [{"kid": "k0"}, {"kid": "k1"}]}, ["keys", "1", "kid"]) == "k1"

    def test_absent_segment_is_missing(self):
        assert get_nested_value({"a": {}}, ["a", "b", "c"]) is MISSING

    def test_none_intermediate_is_missing(self):
        assert get_nested_value({"a": None}, ["a", "b"]) is MISSING

    def test_present_none_is_returned(self):
        assert get_nested_value({"a": None}, ["a"]) is None

    def test_empty_path_returns_object(self):
        obj = {"x": 1}
        assert get_nested_value(obj, []) is obj

    @pytest.mark.parametrize("segment", ["\u00b2", "\u0661", "-1", " 0"])
    def test_non_ascii_or_signed_index_is_missing(self, segment):
        assert get_nested_value({"items": ["a"]}, ["items", segment]) is MISSING


# ── Resolution ────────────────────────────────────────────────────────────────

class TestResolveTemplate:

    def test_whole_expression_keeps_object_type(self, context):
        value = resolve_template("{{config.jwk}}", context)
        assert value == {"kty": "RSA", "kid": "k1"}
        assert isinstance(value, dict)

    def test_whole_expression_keeps_number_and_list(self, context):
        assert resolve_template("{{config.answer}}", context) == 42
        assert resolve_template("{{config.scopes}}", context) == ["openid", "profile"]

    def test_partial_template_stringifies_number(self, context):
        assert resolve_template("prefix-{{config.answer}}-suffix", context) == "prefix-42-suffix"

    def test_partial_template_stringifies_object_as_compact_json(self, context):
        assert resolve_template("jwk={{config.jwk}}", context) == 'jwk={"kty":"RSA","kid":"k1"}'

    def test_unresolved_passthrough(self, context):
        assert resolve_template("{{state.missing}}", context) == "{{state.missing}}"

    def test_unresolved_passthrough_inside_text(self, context):
        assert resolve_template("Bearer {{state.missing}}", context) == "Bearer {{state.missing}}"

    def test_multiple_expressions(self, context):
        result = resolve_template("{{config.clientId}}:{{state.accessToken}}", context)
        assert result == "client-123:at-abc"

    def test_nested_config_path(self, context):
        assert resolve_template("{{config.nested.deep.value}}", context) == "found"

    def test_sub_fn_lookup(self):
        ctx = ExecutionContext(sub_fn_results={"a": {"token": "xyz"}})
        assert resolve_template("{{subFn.a.token}}", ctx) == "xyz"

    def test_sub_fn_unknown_step_is_unresolved(self):
        ctx = ExecutionContext(sub_fn_results={"a": {"token": "xyz"}})
        assert resolve_template("{{subFn.b.token}}", ctx) == "{{subFn.b.token}}"

    def test_env_lookup(self, context, monkeypatch):
        monkeypatch.setenv("OIDCLAB_TEST_SECRET", "s3cret")
        assert resolve_template("{{env.OIDCLAB_TEST_SECRET}}", context) == "s3cret"

    def test_unknown_namespace_raises(self, context):
        with pytest.raises(ExpressionError):
            resolve_template("{{tokenEndpoint}}", context)

    def test_non_string_passes_through(self, context):
        assert resolve_template(17, context) == 17
        assert resolve_template(None, context) is None

    def test_plain_string_unchanged(self, context):
        assert resolve_template("no templates here", context) == "no templates here"


class TestOrFallback:

    def test_first_truthy_wins(self, context):
        assert resolve_template("{{state.accessToken || config.clientId}}", context) == "at-abc"

    def test_falls_back_over_missing(self, context):
        assert resolve_template("{{state.missing || config.clientId}}", context) == "client-123"

    def test_falls_back_over_empty_string_and_zero(self, context):
        assert resolve_template("{{config.empty || state.zero || config.answer}}", context) == 42

    def test_all_falsy_returns_last_value(self, context):
        assert resolve_template("{{state.missing || state.zero}}", context) == 0

    def test_all_missing_is_unresolved(self, context):
        assert resolve_template("{{state.a || state.b}}", context) == "{{state.a || state.b}}"

    def test_empty_collections_are_values(self):
        ctx = ExecutionContext(state={"items": []}, config={"items": [1]})
        assert resolve_template("{{state.items || config.items}}", ctx) == []


class TestHelpers:

    @pytest.mark.parametrize("value", [MISSING, None, False, "", 0, 0.0])
    def test_falsy(self, value):
        assert is_falsy(value)

    @pytest.mark.parametrize("value", [{}, [], "x", 1, True])
    def test_truthy(self, value):
        assert not is_falsy(value)

    def test_stringify(self):
        assert stringify(None) == "null"
        assert stringify(True) == "true"
        assert stringify(3.0) == "3"
        assert stringify(2.5) == "2.5"
        assert stringify([1, "a"]) == '[1,"a"]'
