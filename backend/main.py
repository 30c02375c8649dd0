"""
Modscope — FastAPI Backend
Serves coupling-driven module decompositions of exported call facts.
"""
import sqlite3

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from db import DATA_DIR
from routers import decomposition

app = FastAPI(title="Modscope API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(decomposition.router)


@app.get("/api/repos")
def list_repos():
    repos = []
    for db_file in sorted(DATA_DIR.glob("*.db")):
        repo_id = db_file.stem
        try:
            conn = sqlite3.connect(db_file)
            method_count = conn.execute("SELECT COUNT(*) FROM methods").fetchone()[0]
            call_count   = conn.execute("SELECT COUNT(*) FROM calls").fetchone()[0]
            class_count  = conn.execute(
                "SELECT COUNT(*) FROM (SELECT class_name FROM methods "
                "UNION SELECT caller_class FROM calls)"
            ).fetchone()[0]
            conn.close()
        except sqlite3.Error:
            # Not a call-fact export
            continue
        repos.append({
            "id":           repo_id,
            "name":         repo_id,
            "class_count":  class_count,
            "method_count": method_count,
            "call_count":   call_count,
            "db_path":      str(db_file),
        })
    return {"repos": repos}
