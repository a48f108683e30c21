"""
Tests for settings resolution — precedence, provenance, strict-key conflicts.
"""

import pytest

from depcompose.core.graph.errors import ConflictingPinError, UnknownModuleError
from depcompose.core.graph.settings import bundle_chain, resolve, resolve_all


class TestPrecedence:
    def test_direct_beats_inherited(self, make_graph):
        g = make_graph(
            {"lib": [], "M": ["lib"]},
            bundles={"m": {"ver": "2"}, "l": {"ver": "1", "org": "x"}},
            refs={"M": ["m"], "lib": ["l"]},
        )
        resolved, errors = resolve("M", g)
        assert errors == []
        assert resolved.values == {"ver": "2", "org": "x"}
        assert resolved.sources == {"ver": "m", "org": "l"}

    def test_earlier_dependency_wins(self, make_graph):
        g = make_graph(
            {"first": [], "second": [], "top": ["first", "second"]},
            bundles={"f": {"flag": "-O2"}, "s": {"flag": "-O0", "extra": 1}},
            refs={"first": ["f"], "second": ["s"]},
        )
        resolved, _ = resolve("top", g)
        assert resolved.get("flag") == "-O2"
        assert resolved.get("extra") == 1

    def test_first_direct_bundle_wins(self, make_graph):
        g = make_graph(
            {"M": []},
            bundles={"a": {"k": "from-a"}, "b": {"k": "from-b"}},
            refs={"M": ["a", "b"]},
        )
        resolved, _ = resolve("M", g)
        assert resolved.get("k") == "from-a"
        assert resolved.sources["k"] == "a"

    def test_diamond_visits_each_module_once(self, make_graph):
        g = make_graph(
            {"A": [], "B": ["A"], "C": ["A"], "D": ["B", "C"]},
            bundles={"a": {}, "b": {}, "c": {}, "d": {}},
            refs={"A": ["a"], "B": ["b"], "C": ["c"], "D": ["d"]},
        )
        chain = [f"{owner}:{bundle.name}" for owner, bundle in bundle_chain("D", g)]
        assert chain == ["D:d", "B:b", "A:a", "C:c"]
        resolved, _ = resolve("D", g)
        assert resolved.bundle_chain == chain

    def test_depth_first_before_later_sibling(self, make_graph):
        # A is reached through B (listed first) before C gets a say
        g = make_graph(
            {"A": [], "B": ["A"], "C": [], "D": ["B", "C"]},
            bundles={"a": {"k": "from-A"}, "c": {"k": "from-C"}},
            refs={"A": ["a"], "C": ["c"]},
        )
        resolved, _ = resolve("D", g)
        assert resolved.get("k") == "from-A"

    def test_no_bundles(self, make_graph):
        resolved, errors = resolve("a", make_graph({"a": []}))
        assert resolved.values == {}
        assert resolved.bundle_chain == []
        assert errors == []

    def test_unknown_bundle_is_skipped(self, make_graph):
        g = make_graph({"a": []}, bundles={"b": {"k": 1}}, refs={"a": ["ghost", "b"]})
        resolved, _ = resolve("a", g)
        assert resolved.values == {"k": 1}

    def test_accepts_module_object(self, make_graph):
        g = make_graph({"a": []}, bundles={"b": {"k": 1}}, refs={"a": ["b"]})
        resolved, _ = resolve(g.module("a"), g)
        assert resolved.module == "a"

    def test_unknown_module(self, make_graph):
        with pytest.raises(UnknownModuleError):
            resolve("ghost", make_graph({"a": []}))

    def test_shared_bundle_untouched(self, make_graph):
        g = make_graph(
            {"a": [], "b": []},
            bundles={"common": {"k": "v"}},
            refs={"a": ["common"], "b": ["common"]},
        )
        resolved, _ = resolve("a", g)
        resolved.values["k"] = "mutated"
        assert g.bundle("common").options == {"k": "v"}
        assert resolve("b", g)[0].get("k") == "v"


    def test_resolved_values_do_not_alias_shared_bundle(self, make_graph):
        g = make_graph(
            {"a": [], "b": []},
            bundles={"common": {"ver": "1", "flags": ["-O2"]}},
            refs={"a": ["common"], "b": ["common"]},
        )
        resolved, _ = resolve("a", g)
        resolved.values["flags"].append("-g")
        with pytest.raises(TypeError):
            g.bundle("common").options["ver"] = "9"

        assert resolved.get("flags") == ["-O2", "-g"]
        assert resolve("b", g)[0].values == {"ver": "1", "flags": ["-O2"]}

class TestStrictKeys:
    def _graph(self, make_graph):
        return make_graph(
            {"dep": [], "M": ["dep"]},
            bundles={"direct": {"ver": "2"}, "inherited": {"ver": "1"}},
            refs={"M": ["direct"], "dep": ["inherited"]},
        )

    def test_strict_conflict(self, make_graph):
        _, errors = resolve("M", self._graph(make_graph), strict_keys={"ver"})
        assert len(errors) == 1
        err = errors[0]
        assert isinstance(err, ConflictingPinError)
        assert err.key == "ver"
        assert err.values == ["2", "1"]
        assert err.module == "M"

    def test_non_strict_override(self, make_graph):
        resolved, errors = resolve("M", self._graph(make_graph))
        assert errors == []
        assert resolved.get("ver") == "2"

    def test_strict_agreeing_values(self, make_graph):
        g = make_graph(
            {"dep": [], "M": ["dep"]},
            bundles={"x": {"ver": "1"}, "y": {"ver": "1"}},
            refs={"M": ["x"], "dep": ["y"]},
        )
        _, errors = resolve("M", g, strict_keys=["ver"])
        assert errors == []

    def test_three_way_conflict_values_in_precedence_order(self, make_graph):
        g = make_graph(
            {"a": [], "b": [], "M": ["b", "a"]},
            bundles={"m": {"v": "3"}, "a": {"v": "1"}, "b": {"v": "2"}},
            refs={"M": ["m"], "a": ["a"], "b": ["b"]},
        )
        _, errors = resolve("M", g, strict_keys=["v"])
        assert errors[0].values == ["3", "2", "1"]

    def test_conflict_between_two_dependencies(self, make_graph):
        g = make_graph(
            {"host": [], "accel": [], "soc": ["host", "accel"]},
            bundles={"h": {"scalaVersion": "2.13"}, "a": {"scalaVersion": "2.12"}},
            refs={"host": ["h"], "accel": ["a"]},
        )
        resolved, errors = resolve("soc", g, strict_keys=["scalaVersion"])
        assert resolved.get("scalaVersion") == "2.13"
        assert errors[0].values == ["2.13", "2.12"]


    def test_values_of_different_types_conflict(self, make_graph):
        g = make_graph(
            {"a": [], "b": [], "c": [], "M": ["a", "b", "c"]},
            bundles={"m": {"v": 1}, "a": {"v": True}, "b": {"v": 1.0}, "c": {"v": 1}},
            refs={"M": ["m"], "a": ["a"], "b": ["b"], "c": ["c"]},
        )
        _, errors = resolve("M", g, strict_keys=["v"])
        assert len(errors) == 1
        values = errors[0].values
        assert [type(v) for v in values] == [int, bool, float]

    def test_list_values_compared_element_types(self, make_graph):
        g = make_graph(
            {"dep": [], "M": ["dep"]},
            bundles={"x": {"flags": ["-O2", 1]}, "y": {"flags": ["-O2", True]}},
            refs={"M": ["x"], "dep": ["y"]},
        )
        _, errors = resolve("M", g, strict_keys=["flags"])
        assert errors[0].values == [["-O2", 1], ["-O2", True]]

    def test_equal_list_values_agree(self, make_graph):
        g = make_graph(
            {"dep": [], "M": ["dep"]},
            bundles={"x": {"flags": ["-O2"]}, "y": {"flags": ["-O2"]}},
            refs={"M": ["x"], "dep": ["y"]},
        )
        assert resolve("M", g, strict_keys=["flags"])[1] == []

class TestResolveAll:
    def test_inherited_conflict_reported_once(self, make_graph):
        g = make_graph(
            {"A": [], "B": ["A"], "C": ["B"]},
            bundles={"a": {"ver": "1"}, "b": {"ver": "2"}},
            refs={"A": ["a"], "B": ["b"]},
        )
        settings, errors = resolve_all(g, ["ver"], order=["A", "B", "C"])
        assert set(settings) == {"A", "B", "C"}
        assert [(e.module, e.key) for e in errors] == [("B", "ver")]

    def test_new_conflict_downstream_reported(self, make_graph):
        g = make_graph(
            {"A": [], "B": ["A"], "C": ["B"]},
            bundles={"a": {"ver": "1"}, "b": {"ver": "2"}, "c": {"ver": "3"}},
            refs={"A": ["a"], "B": ["b"], "C": ["c"]},
        )
        _, errors = resolve_all(g, ["ver"])
        assert [(e.module, e.values) for e in errors] == [
            ("B", ["2", "1"]),
            ("C", ["3", "2", "1"]),
        ]

    def test_no_conflicts(self, make_graph):
        g = make_graph({"a": [], "b": ["a"]}, bundles={"c": {"k": 1}}, refs={"a": ["c"]})
        settings, errors = resolve_all(g, ["k"])
        assert errors == []
        assert settings["b"].get("k") == 1
        assert settings["b"].sources["k"] == "c"
