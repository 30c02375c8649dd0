"""
Unit tests for analytics/callgraph.py.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from analytics.callgraph import CallGraph


class TestRegistration:
    def test_add_class_creates_both_entries(self):
        g = CallGraph()
        g.add_class("Foo")
        assert g.declared_methods == {"Foo": set()}
        assert g.called_method_names == {"Foo": set()}

    def test_add_class_is_idempotent(self):
        g = CallGraph()
        g.add_class("Foo")
        g.add_method("Foo", "bar")
        g.add_class("Foo")
        assert g.class_methods("Foo") == {"bar"}
        assert len(g) == 1

    def test_add_method_auto_creates_class(self):
        g = CallGraph()
        g.add_method("Foo", "bar")
        assert "Foo" in g
        assert g.called_methods("Foo") == set()

    def test_add_method_call_auto_creates_class(self):
        g = CallGraph()
        g.add_method_call("Foo", "baz")
        assert "Foo" in g
        assert g.class_methods("Foo") == set()
        assert g.called_methods("Foo") == {"baz"}

    def test_calls_are_not_resolved(self):
        # A call is kept by name even when no class declares it
        g = CallGraph()
        g.add_method_call("Foo", "nowhere")
        assert g.called_methods("Foo") == {"nowhere"}

    def test_classes_keep_registration_order(self):
        g = CallGraph()
        for name in ["Zed", "Alpha", "Mid"]:
            g.add_class(name)
        g.add_method_call("Omega", "x")
        assert g.classes() == ["Zed", "Alpha", "Mid", "Omega"]


class TestLookups:
    def test_unknown_class_gives_empty_sets(self):
        g = CallGraph()
        assert g.class_methods("Missing") == set()
        assert g.called_methods("Missing") == set()
        assert "Missing" not in g

    def test_returned_sets_are_read_only_views(self):
        g = CallGraph()
        g.add_method("Foo", "bar")
        methods = g.class_methods("Foo")
        assert isinstance(methods, frozenset)
        g.add_method("Foo", "baz")
        assert methods == {"bar"}

    def test_describe(self, chain_graph):
        assert chain_graph.describe() == {
            "A": {"declares": [],    "calls": ["x"]},
            "B": {"declares": ["x"], "calls": ["y"]},
            "C": {"declares": ["y"], "calls": []},
        }
