"""
Tests for references (schemaflow/ref.py) and their resolution during validation

Run: python -m pytest tests/test_ref.py -q
"""

import pytest

import schemaflow as sf
from schemaflow import UNDEFINED, ContractViolation, ref
from schemaflow.state import Mainstay, State


# ---------------------------------------------------------------------------
# Tests: key parsing
# ---------------------------------------------------------------------------

class TestParse:
    def test_sibling(self):
        reference = ref("a.b")
        assert reference.type == "value"
        assert reference.ancestor == 1
        assert reference.path == ("a", "b")
        assert reference.display == "ref:a.b"

    def test_self(self):
        reference = ref(".a")
        assert reference.ancestor == 0
        assert reference.path == ("a",)

    def test_ancestor_by_leading_separators(self):
        assert ref("..a").ancestor == 1
        assert ref("...a").ancestor == 2

    def test_root(self):
        reference = ref("/a.b")
        assert reference.ancestor == "root"
        assert reference.path == ("a", "b")

    def test_global(self):
        reference = ref("$x.y")
        assert reference.type == "global"
        assert reference.path == ("x", "y")

    def test_explicit_ancestor(self):
        reference = ref("a", ancestor=2)
        assert reference.ancestor == 2
        assert reference.depth == 2

    def test_custom_separator(self):
        assert ref("a/b", separator="/").path == ("a", "b")

    @pytest.mark.parametrize(
        "key, options",
        [
            (1, {}),
            ("/a", {"ancestor": 1}),
            ("a", {"ancestor": -1}),
            ("a", {"separator": ".."}),
            ("a", {"adjust": 5}),
        ],
    )
    def test_invalid(self, key, options):
        with pytest.raises(ContractViolation):
            ref(key, **options)


# ---------------------------------------------------------------------------
# Tests: resolution
# ---------------------------------------------------------------------------

class TestResolve:
    def _state(self, path, ancestors):
        return State(path, ancestors, Mainstay())

    def test_sibling_lookup(self):
        parent = {"a": {"b": 3}, "c": 0}
        assert ref("a.b").resolve(0, self._state(("c",), [parent])) == 3

    def test_self_lookup(self):
        assert ref(".x").resolve({"x": 1}, self._state((), [])) == 1

    def test_root_lookup(self):
        root = {"a": 1, "b": {"c": 2}}
        state = self._state(("b", "c"), [root["b"], root])
        assert ref("/a").resolve(2, state) == 1

    def test_missing_is_undefined(self):
        assert ref("nope").resolve(0, self._state(("c",), [{"c": 0}])) is UNDEFINED

    def test_past_the_root_is_undefined(self):
        assert ref("....a").resolve(0, self._state(("c",), [{"c": 0}])) is UNDEFINED

    def test_adjust_and_map(self):
        state = self._state(("c",), [{"a": 2, "c": 0}])
        assert ref("a", adjust=lambda v: v * 10).resolve(0, state) == 20
        assert ref("a", map_={2: "two"}).resolve(0, state) == "two"
        assert ref("a", map_=[(3, "three")]).resolve(0, state) == 2

    def test_context(self):
        prefs = sf.DEFAULTS.merge({"context": {"x": {"y": 4}}})
        assert ref("$x.y").resolve(0, self._state((), []), prefs) == 4


# ---------------------------------------------------------------------------
# Tests: references inside schemas
# ---------------------------------------------------------------------------

class TestInSchemas:
    def test_rule_limit_from_sibling(self):
        schema = sf.object_({"a": sf.number(), "b": sf.number().min(ref("a"))})

        assert schema.validate({"a": 5, "b": 6}).error is None

        error = schema.validate({"a": 5, "b": 3}).error
        assert error.details[0]["type"] == "number.min"
        assert error.message == '"b" must be greater than or equal to 5'

    def test_invalid_resolved_argument(self):
        schema = sf.object_({"a": sf.any_(), "b": sf.number().min(ref("a"))})
        error = schema.validate({"a": "x", "b": 1}).error
        assert error.details[0]["type"] == "any.ref"
        assert error.message == '"b" limit references "ref:a" which must be a number'

    def test_valid_from_context(self):
        schema = sf.any_().valid(ref("$allowed"))
        assert schema.validate(3, context={"allowed": 3}).error is None
        assert schema.validate(4, context={"allowed": 3}).error is not None

    def test_in_reference(self):
        schema = sf.object_({"choices": sf.array(), "pick": sf.valid(sf.in_("choices"))})
        assert schema.validate({"choices": ["x", "y"], "pick": "y"}).error is None
        assert schema.validate({"choices": ["x", "y"], "pick": "z"}).error is not None

    def test_raw_value_is_seen_converted(self):
        schema = sf.object_({"a": sf.number().raw(), "b": sf.number().min(ref("a"))})

        result = schema.validate({"a": "5", "b": 6})
        assert result.error is None
        assert result.value == {"a": "5", "b": 6}

        error = schema.validate({"a": "5", "b": 4}).error
        assert error.details[0]["type"] == "number.min"

    def test_default_from_reference(self):
        schema = sf.object_({"a": sf.number(), "b": sf.number().default(ref("a"))})
        assert schema.validate({"a": 3}).value == {"a": 3, "b": 3}

    def test_in_reference_rejected_in_rule(self):
        with pytest.raises(ContractViolation):
            sf.number().min(sf.in_("a"))

    def test_reference_not_supported_by_argument(self):
        with pytest.raises(ContractViolation):
            sf.string().pattern(ref("a"))

    def test_schema_with_refs_is_not_cacheable(self):
        assert not sf.number().min(ref("a")).cache()._cacheable
        assert sf.number().min(1).cache()._cacheable
        assert not sf.object_({"b": sf.number().min(ref("a"))})._cacheable
