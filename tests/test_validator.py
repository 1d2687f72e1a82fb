"""
Tests for the validation engine (schemaflow/validator.py)

Run: python -m pytest tests/test_validator.py -q
"""

import pytest

import schemaflow as sf
from schemaflow import OVERRIDE, UNDEFINED, ContractViolation, ValidationError


def _types(result):
    return [item["type"] for item in result.error.details]


# ---------------------------------------------------------------------------
# Tests: presence
# ---------------------------------------------------------------------------

class TestPresence:
    def test_optional_undefined(self):
        result = sf.number().validate()
        assert result.error is None
        assert result.value is UNDEFINED

    def test_required(self):
        result = sf.number().required().validate()
        assert _types(result) == ["any.required"]
        assert result.error.message == '"value" is required'

    def test_forbidden(self):
        assert sf.any_().forbidden().validate().error is None
        assert _types(sf.any_().forbidden().validate(1)) == ["any.unknown"]

    def test_presence_preference(self):
        assert _types(sf.number().validate(presence="required")) == ["any.required"]
        assert sf.number().optional().validate(presence="required").error is None

    def test_unknown_presence_mode(self):
        with pytest.raises(ContractViolation):
            sf.any_().presence("sometimes")


# ---------------------------------------------------------------------------
# Tests: allowed and denied values
# ---------------------------------------------------------------------------

class TestAllowDeny:
    def test_allow_skips_type_check(self):
        assert sf.number().allow("x").validate("x").value == "x"

    def test_valid_restricts(self):
        schema = sf.any_().valid("a", "b")
        assert schema.validate("a").error is None

        result = schema.validate("c")
        assert _types(result) == ["any.only"]
        assert result.error.message == '"value" must be one of [a, b]'

    def test_invalid(self):
        result = sf.string().invalid("bad").validate("bad")
        assert _types(result) == ["any.invalid"]
        assert result.error.message == '"value" contains an invalid value'

    def test_allow_then_invalid_moves_value(self):
        schema = sf.any_().valid("a", "b").invalid("a")
        assert schema.validate("a").error is not None
        assert schema.validate("b").error is None

    def test_override_replaces_set(self):
        schema = sf.any_().valid("a").valid(OVERRIDE, "b")
        assert schema.validate("a").error is not None
        assert schema.validate("b").error is None

    def test_insensitive_converts_to_stored_value(self):
        schema = sf.string().valid("Yes").insensitive()
        assert schema.validate("yes").value == "Yes"
        assert schema.validate("yes", convert=False).value == "yes"

    def test_collects_only_and_base_without_abort_early(self):
        result = sf.number().valid(1).validate("x", abort_early=False)
        assert _types(result) == ["any.only", "number.base"]


# ---------------------------------------------------------------------------
# Tests: rules
# ---------------------------------------------------------------------------

class TestRules:
    def test_abort_early(self):
        schema = sf.number().min(10).multiple(3)
        assert _types(schema.validate(5)) == ["number.min"]
        assert _types(schema.validate(5, abort_early=False)) == ["number.min", "number.multiple"]

    def test_base_error_aborts_even_when_collecting(self):
        result = sf.number().min(10).validate("x", abort_early=False)
        assert _types(result) == ["number.base"]

    def test_rule_replaced_by_same_name(self):
        schema = sf.number().min(10).min(1)
        assert schema.validate(5).error is None
        assert len(schema._rules) == 1

    def test_invalid_rule_argument(self):
        with pytest.raises(ContractViolation):
            sf.number().min("x")

    def test_message_override(self):
        result = sf.number().min(10).message("too small: {{ value }}").validate(5)
        assert result.error.message == "too small: 5"

    def test_message_override_by_code(self):
        result = sf.number().min(10).message({"number.min": "{{ label }} is low"}).validate(5)
        assert result.error.message == "value is low"

    def test_rule_without_rules(self):
        with pytest.raises(ContractViolation):
            sf.number().warn()

    def test_warning_does_not_fail(self):
        result = sf.number().min(10).warn().validate(5)
        assert result.error is None
        assert result.value == 5
        assert result.warning["details"][0]["type"] == "number.min"
        assert result.warning["message"] == '"value" must be greater than or equal to 10'

    def test_custom(self):
        assert sf.number().custom(lambda value, helpers: value * 2).validate(2).value == 4

    def test_custom_returning_none_keeps_value(self):
        assert sf.any_().custom(lambda value, helpers: None).validate("a").value == "a"

    def test_custom_helpers_error(self):
        schema = sf.any_().custom(lambda value, helpers: helpers.error("any.invalid"))
        assert _types(schema.validate(1)) == ["any.invalid"]

    def test_custom_raising(self):
        def fail(value, helpers):
            raise ValueError("broken")

        result = sf.any_().custom(fail).validate(1)
        assert _types(result) == ["any.custom"]
        assert result.error.message == '"value" failed custom validation because broken'

    def test_warning_rule(self):
        result = sf.any_().warning("custom.note", {"reason": "legacy"}).validate(1)
        assert result.error is None
        detail = result.warning["details"][0]
        assert detail["type"] == "custom.note"
        assert detail["context"]["reason"] == "legacy"


# ---------------------------------------------------------------------------
# Tests: finalize
# ---------------------------------------------------------------------------

class TestDefaults:
    def test_static_default(self):
        assert sf.number().default(5).validate().value == 5

    def test_default_is_cloned(self):
        items = [1]
        value = sf.any_().default(items).validate().value
        assert value == [1]
        assert value is not items

    def test_default_function_without_arguments(self):
        assert sf.any_().default(lambda: "x").validate().value == "x"

    def test_default_function_receives_parent(self):
        schema = sf.object_({"a": sf.number(), "b": sf.number().default(lambda parent, prefs: parent["a"] + 1)})
        assert schema.validate({"a": 1}).value == {"a": 1, "b": 2}

    def test_default_function_receives_parent_only(self):
        schema = sf.object_({"a": sf.number(), "b": sf.number().default(lambda parent: parent["a"] * 2)})
        assert schema.validate({"a": 3}).value == {"a": 3, "b": 6}

    def test_default_factory_is_called_without_arguments(self):
        schema = sf.object_({"a": sf.any_().default(list), "b": sf.any_().default(dict)})
        assert schema.validate({}).value == {"a": [], "b": {}}

    def test_default_function_with_optional_parameters(self):
        schema = sf.object_({"a": sf.any_().default(lambda size=2: [0] * size)})
        assert schema.validate({}).value == {"a": [0, 0]}

    def test_default_function_raising(self):
        result = sf.any_().default(lambda: 1 / 0).validate()
        assert _types(result) == ["any.default"]
        assert result.error.message == '"value" threw an error when running default method'

    def test_no_defaults(self):
        assert sf.number().default(5).validate(no_defaults=True).value is UNDEFINED

    def test_default_none(self):
        assert sf.any_().default(None).validate().value is None

    def test_deep_default(self):
        schema = sf.object_({"a": sf.number().default(1), "b": sf.object_({"c": sf.string().default("x")}).default()})
        assert schema.default().validate().value == {"a": 1, "b": {"c": "x"}}


class TestFinalize:
    def test_failover(self):
        result = sf.number().failover(0).validate("x")
        assert result.error is None
        assert result.value == 0

    def test_failover_function_raising(self):
        def fail():
            raise RuntimeError("no")

        result = sf.number().failover(fail).validate("x")
        assert _types(result) == ["number.base", "any.failover"]

    def test_error_override_instance(self):
        custom = ValueError("nope")
        assert sf.number().error(custom).validate("x").error is custom

    def test_error_override_function(self):
        schema = sf.number().error(lambda errors: ValueError(f"{len(errors)} failed"))
        assert str(schema.validate("x").error) == "1 failed"

    def test_error_override_invalid(self):
        with pytest.raises(ContractViolation):
            sf.number().error("nope")

    def test_cast(self):
        assert sf.number().cast("string").validate("5").value == "5"
        assert sf.boolean().cast("number").validate(True).value == 1

    def test_unknown_cast(self):
        with pytest.raises(ContractViolation):
            sf.number().cast("date")

    def test_strip(self):
        schema = sf.object_({"a": sf.any_().strip(), "b": sf.any_()})
        assert schema.validate({"a": 1, "b": 2}).value == {"b": 2}

    def test_raw(self):
        assert sf.number().raw().validate("5").value == "5"

    def test_empty(self):
        assert sf.string().empty("").validate("").value is UNDEFINED
        assert sf.string().trim().empty("").validate("  ").value is UNDEFINED
        assert _types(sf.string().empty("").required().validate("")) == ["any.required"]

    def test_label(self):
        result = sf.number().label("Age").validate("x")
        assert result.error.message == '"Age" must be a number'


# ---------------------------------------------------------------------------
# Tests: preferences and cache
# ---------------------------------------------------------------------------

class TestPreferences:
    def test_unknown_preference(self):
        with pytest.raises(ContractViolation):
            sf.number().validate(1, bogus=True)

    def test_warnings_preference_rejected_in_sync(self):
        with pytest.raises(ContractViolation, match="Cannot override warnings preference"):
            sf.number().validate(1, warnings=True)

    def test_convert(self):
        assert _types(sf.number().validate("5", convert=False)) == ["number.base"]

    def test_node_preferences(self):
        schema = sf.object_({"a": sf.number().prefs(convert=False), "b": sf.number()})
        result = schema.validate({"a": "1", "b": "2"}, abort_early=False)
        assert _types(result) == ["number.base"]
        assert result.error.details[0]["path"] == ["a"]

    def test_node_preferences_reject_context(self):
        with pytest.raises(ContractViolation):
            sf.number().prefs(context={})

    def test_error_label_key(self):
        schema = sf.object_({"a": sf.object_({"b": sf.number()})})
        assert schema.validate({"a": {"b": "x"}}).error.message == '"a.b" must be a number'
        assert schema.validate({"a": {"b": "x"}}, error_label="key").error.message == '"b" must be a number'

    def test_messages_preference(self):
        result = sf.number().validate("x", messages={"number.base": "{{ label }} is no number"})
        assert result.error.message == "value is no number"

    def test_language_preference(self):
        messages = {"french": {"number.base": '"{{ label }}" doit être un nombre'}}
        result = sf.number().validate("x", messages=messages, language="french")
        assert result.error.message == '"value" doit être un nombre'


class TestCache:
    def test_cached_result_is_reused(self):
        calls = []

        def count(value, helpers):
            calls.append(value)

        schema = sf.any_().custom(count).cache()
        schema.validate(1)
        schema.validate(1)
        schema.validate(2)
        assert calls == [1, 2]

    def test_cache_preference_disables(self):
        calls = []
        schema = sf.any_().custom(lambda value, helpers: calls.append(value)).cache()
        schema.validate(1, cache=False)
        schema.validate(1, cache=False)
        assert calls == [1, 1]

    def test_bool_and_int_keys_differ(self):
        schema = sf.number().cache()
        assert schema.validate(1).error is None
        assert schema.validate(True).error is not None

    def test_composite_input_not_cached(self):
        schema = sf.any_().cache()
        schema.validate({"a": 1})
        assert len(schema._cache) == 0

    def test_clone_gets_its_own_cache(self):
        schema = sf.number().cache()
        schema.validate(1)
        derived = schema.min(0)
        assert len(derived._cache) == 0
        assert len(schema._cache) == 1

    def test_lru_bound(self):
        schema = sf.number().cache(sf.Cache(max_size=2))
        for value in (1, 2, 3):
            schema.validate(value)
        assert len(schema._cache) == 2
        assert schema._cache.get(1) is None


# ---------------------------------------------------------------------------
# Tests: purity
# ---------------------------------------------------------------------------

class TestPurity:
    @pytest.mark.parametrize(
        "schema, value",
        [
            (sf.object_({"a": sf.number(), "b": sf.array().items(sf.string().trim())}), {"a": "1", "b": [" x "]}),
            (sf.alternatives(sf.number(), sf.string()), "x"),
            (sf.number().min(10), 5),
        ],
    )
    def test_same_result_twice(self, schema, value):
        first = schema.validate(value, convert=False)
        second = schema.validate(value, convert=False)
        assert first.value == second.value
        assert (first.error is None) == (second.error is None)
        if first.error is not None:
            assert first.error.details == second.error.details

    def test_input_is_not_mutated(self):
        value = {"a": "1", "b": [" x "]}
        sf.object_({"a": sf.number(), "b": sf.array().items(sf.string().trim())}).validate(value)
        assert value == {"a": "1", "b": [" x "]}

    def test_builders_return_new_nodes(self):
        base = sf.number()
        derived = base.min(1).required()
        assert base._rules == []
        assert "presence" not in base._flags
        assert derived is not base


# ---------------------------------------------------------------------------
# Tests: module level entry points
# ---------------------------------------------------------------------------

class TestEntryPoints:
    def test_validate_compiles_literals(self):
        result = sf.validate({"a": "1"}, {"a": sf.number()})
        assert result.value == {"a": 1}

    def test_validation_error(self):
        error = sf.validate("x", sf.number()).error
        assert isinstance(error, ValidationError)
        assert error.original == "x"
        assert error.details[0]["path"] == []

    def test_invalid_schema_content(self):
        with pytest.raises(ContractViolation):
            sf.compile_schema(object())
