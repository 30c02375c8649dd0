from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError

from db import get_db, read_decomposition_config, write_decomposition_config
from queries.callgraph import fetch_call_graph, graph_from_records
from analytics.report import run_decomposition

router = APIRouter()


class ClassFacts(BaseModel):
    name:    str
    methods: list[str] = []
    calls:   list[str] = []


class DecomposeRequest(BaseModel):
    classes:      list[ClassFacts]
    min_coupling: float         = Field(0.0, ge=0.0, le=1.0)
    max_modules:  int           = Field(5, ge=1)
    threshold:    float         = Field(0.0, ge=0.0, le=1.0)
    max_selected: Optional[int] = Field(None, ge=1)


class DecompositionConfig(BaseModel):
    min_coupling: float = Field(0.0, ge=0.0, le=1.0)
    max_modules:  int   = Field(5, ge=1)
    threshold:    float = Field(0.0, ge=0.0, le=1.0)


@router.post("/api/decompose")
def decompose(body: DecomposeRequest):
    graph = graph_from_records([c.model_dump() for c in body.classes])
    _, report = run_decomposition(
        graph, body.min_coupling, body.max_modules, body.threshold, body.max_selected,
    )
    return report


@router.get("/api/repos/{repo_id}/decomposition")
def repo_decomposition(
    repo_id:      str,
    min_coupling: Optional[float] = Query(None, ge=0.0, le=1.0),
    max_modules:  Optional[int]   = Query(None, ge=1),
    threshold:    Optional[float] = Query(None, ge=0.0, le=1.0),
):
    try:
        config = DecompositionConfig(**read_decomposition_config(repo_id)).model_dump()
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=[{"loc": e["loc"], "msg": e["msg"]} for e in exc.errors()],
        )
    if min_coupling is not None:
        config["min_coupling"] = min_coupling
    if max_modules is not None:
        config["max_modules"] = max_modules
    if threshold is not None:
        config["threshold"] = threshold

    conn = get_db(repo_id)
    graph = fetch_call_graph(conn)
    conn.close()

    _, report = run_decomposition(
        graph, config["min_coupling"], config["max_modules"], config["threshold"],
    )
    return {"repo_id": repo_id, "config": config, **report}


@router.get("/api/repos/{repo_id}/decomposition-config")
def get_decomposition_config(repo_id: str):
    return read_decomposition_config(repo_id)


@router.put("/api/repos/{repo_id}/decomposition-config")
def put_decomposition_config(repo_id: str, body: DecompositionConfig):
    config = body.model_dump()
    write_decomposition_config(repo_id, config)
    return config
