"""
Call-fact loaders — I/O only.

Builds a CallGraph from a parser's exported facts. Two formats are accepted:

JSON   {"classes": [{"name": "Foo", "methods": ["a"], "calls": ["b"]}, ...]}
SQLite tables  methods(class_name, method_name)
               calls(caller_class, method_name)
               classes(name)            -- optional, for classes with no rows above
"""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from analytics.callgraph import CallGraph


def graph_from_records(records: list[dict]) -> CallGraph:
    """
    records — list of dicts: {name, methods, calls}; methods/calls optional
    """
    graph = CallGraph()
    for rec in records:
        if not isinstance(rec, dict):
            raise ValueError(f"Class record must be an object: {rec!r}")
        name = rec.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"Class record without a name: {rec!r}")
        methods = _name_list(rec, "methods")
        calls = _name_list(rec, "calls")
        graph.add_class(name)
        for m in methods:
            graph.add_method(name, m)
        for m in calls:
            graph.add_method_call(name, m)
    return graph


def _name_list(rec: dict, key: str) -> list[str]:
    values = rec.get(key, [])
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ValueError(f"{rec['name']}: '{key}' must be a list of method names")
    return values


def load_json_graph(path: Path) -> CallGraph:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict) or not isinstance(data.get("classes"), list):
        raise ValueError(f"{path}: expected an object with a 'classes' list")
    return graph_from_records(data["classes"])


def _has_table(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?", (name,)
    ).fetchone()
    return row is not None


def fetch_call_graph(conn: sqlite3.Connection) -> CallGraph:
    """Read classes, declared methods and called names from an open DB."""
    graph = CallGraph()
    if _has_table(conn, "classes"):
        for (name,) in conn.execute("SELECT name FROM classes ORDER BY rowid"):
            graph.add_class(name)
    for cls, method in conn.execute(
        "SELECT class_name, method_name FROM methods ORDER BY rowid"
    ):
        graph.add_method(cls, method)
    for cls, method in conn.execute(
        "SELECT caller_class, method_name FROM calls ORDER BY rowid"
    ):
        graph.add_method_call(cls, method)
    return graph


def load_sqlite_graph(path: Path) -> CallGraph:
    conn = sqlite3.connect(str(path))
    try:
        return fetch_call_graph(conn)
    finally:
        conn.close()


def load_call_graph(path: Path) -> CallGraph:
    """Dispatch on file extension (.json, .db / .sqlite)."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        return load_json_graph(path)
    if suffix in (".db", ".sqlite", ".sqlite3"):
        return load_sqlite_graph(path)
    raise ValueError(f"Unsupported call-fact format: {path.name}")
