"""
Tests for the decomposition router, db config helpers and the app's repo listing.

Route functions are called directly; data/ is redirected to a tmp dir.
"""
import sqlite3
import sys
from pathlib import Path

import pytest
from fastapi import HTTPException

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import db
import main
from routers.decomposition import (
    ClassFacts,
    DecomposeRequest,
    DecompositionConfig,
    decompose,
    get_decomposition_config,
    put_decomposition_config,
    repo_decomposition,
)
from test_callgraph_queries import write_facts_db


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "DATA_DIR", tmp_path)
    monkeypatch.setattr(db, "CONFIG_DIR", tmp_path)
    monkeypatch.setattr(main, "DATA_DIR", tmp_path)
    return tmp_path


class TestConfig:
    def test_defaults(self, data_dir):
        assert db.read_decomposition_config("repo") == {
            "min_coupling": 0.0, "max_modules": 5, "threshold": 0.0,
        }

    def test_write_then_read(self, data_dir):
        db.write_decomposition_config("repo", {"max_modules": 2})
        config = db.read_decomposition_config("repo")
        assert config["max_modules"] == 2
        assert config["threshold"] == 0.0

    def test_put_and_get_routes(self, data_dir):
        put_decomposition_config("repo", DecompositionConfig(min_coupling=0.1, max_modules=1))
        assert get_decomposition_config("repo") == {
            "min_coupling": 0.1, "max_modules": 1, "threshold": 0.0,
        }
        assert (data_dir / "repo.decomposition.json").exists()


class TestDecompose:
    def test_post_body(self):
        body = DecomposeRequest(
            classes=[
                ClassFacts(name="A", calls=["x"]),
                ClassFacts(name="B", methods=["x"], calls=["y"]),
                ClassFacts(name="C", methods=["y"]),
            ],
            min_coupling=0.1,
            max_modules=1,
        )
        report = decompose(body)
        assert report["modules"] == [["A", "B", "C"]]
        assert [h["coupling"] for h in report["history"]] == [0.25, 0.125]

    def test_request_validation(self):
        with pytest.raises(ValueError):
            DecomposeRequest(classes=[], threshold=1.5)

    def test_repo_decomposition(self, data_dir):
        write_facts_db(data_dir / "repo.db")
        db.write_decomposition_config("repo", {"min_coupling": 0.4, "max_modules": 1})
        # stored config: 0.4 blocks every merge
        report = repo_decomposition("repo", min_coupling=None, max_modules=None, threshold=None)
        assert report["config"]["min_coupling"] == 0.4
        assert report["history"] == []
        # query params override the stored config; "Empty" shares nothing and stays apart
        report = repo_decomposition("repo", min_coupling=0.1, max_modules=None, threshold=None)
        assert report["history"][-1]["result"] == ["A", "B", "C"]
        assert len(report["clusters"]) == 2

    def test_hand_edited_config_is_coerced(self, data_dir):
        write_facts_db(data_dir / "repo.db")
        (data_dir / "repo.decomposition.json").write_text(
            '{"max_modules": "3", "min_coupling": "0.1"}'
        )
        report = repo_decomposition("repo", min_coupling=None, max_modules=None, threshold=None)
        assert report["config"] == {"min_coupling": 0.1, "max_modules": 3, "threshold": 0.0}
        assert len(report["history"]) == 1

    @pytest.mark.parametrize("stored", [
        '{"max_modules": "lots"}',
        '{"max_modules": 0}',
        '{"threshold": 2.5}',
    ])
    def test_invalid_stored_config_is_422(self, data_dir, stored):
        write_facts_db(data_dir / "repo.db")
        (data_dir / "repo.decomposition.json").write_text(stored)
        with pytest.raises(HTTPException) as exc:
            repo_decomposition("repo", min_coupling=None, max_modules=None, threshold=None)
        assert exc.value.status_code == 422

    def test_missing_repo_is_404(self, data_dir):
        with pytest.raises(HTTPException) as exc:
            repo_decomposition("nope", min_coupling=None, max_modules=None, threshold=None)
        assert exc.value.status_code == 404


class TestListRepos:
    def test_lists_call_fact_dbs_only(self, data_dir):
        write_facts_db(data_dir / "repo.db")
        sqlite3.connect(str(data_dir / "other.db")).close()
        repos = main.list_repos()["repos"]
        assert [r["id"] for r in repos] == ["repo"]
        assert repos[0]["class_count"] == 3
        assert repos[0]["method_count"] == 2
        assert repos[0]["call_count"] == 2
