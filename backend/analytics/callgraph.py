"""
Class-level call graph — the input model for coupling analysis.

Records, per class, the method names it declares and the method names it
calls. Calls are stored by name only; which class actually owns a callee is
decided later by name intersection in analytics/coupling.py.
"""
from __future__ import annotations

_EMPTY: frozenset[str] = frozenset()


class CallGraph:
    """
    Declared and called method names per class.

    Classes keep their registration order; downstream analytics enumerate
    classes (and therefore break ties) in that order.
    """

    def __init__(self) -> None:
        self.declared_methods: dict[str, set[str]] = {}
        self.called_method_names: dict[str, set[str]] = {}

    def add_class(self, class_id: str) -> None:
        self.declared_methods.setdefault(class_id, set())
        self.called_method_names.setdefault(class_id, set())

    def add_method(self, class_id: str, method_name: str) -> None:
        self.add_class(class_id)
        self.declared_methods[class_id].add(method_name)

    def add_method_call(self, caller_class_id: str, called_method_name: str) -> None:
        self.add_class(caller_class_id)
        self.called_method_names[caller_class_id].add(called_method_name)

    def classes(self) -> list[str]:
        return list(self.declared_methods)

    def class_methods(self, class_id: str) -> frozenset[str]:
        """Methods declared by class_id; empty for an unknown class."""
        return frozenset(self.declared_methods.get(class_id, _EMPTY))

    def called_methods(self, class_id: str) -> frozenset[str]:
        """Method names called from class_id; empty for an unknown class."""
        return frozenset(self.called_method_names.get(class_id, _EMPTY))

    def describe(self) -> dict[str, dict]:
        return {
            c: {
                "declares": sorted(self.declared_methods[c]),
                "calls":    sorted(self.called_method_names[c]),
            }
            for c in self.declared_methods
        }

    def __contains__(self, class_id: object) -> bool:
        return class_id in self.declared_methods

    def __len__(self) -> int:
        return len(self.declared_methods)

    def __repr__(self) -> str:
        return f"CallGraph(classes={len(self)})"
