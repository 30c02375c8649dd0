"""
Modscope batch decomposition pass.

Loads a call-fact export, computes normalized class coupling, clusters the
classes hierarchically and writes a JSON report with the resulting modules.

Usage:
    python3 decompose.py data/myrepo.db
    python3 decompose.py facts.json --min-coupling 0.05 --max-modules 3
    python3 decompose.py facts.json --text --verbose   # also print dendrogram + history

Output: JSON report written to data/decomposition_report.json (default).
"""
from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

BACKEND = Path(__file__).parent
sys.path.insert(0, str(BACKEND))

from db import (                          # noqa: E402
    DATA_DIR,
    DEFAULT_MAX_MODULES,
    DEFAULT_MIN_COUPLING,
    DEFAULT_THRESHOLD,
)
from queries.callgraph import load_call_graph       # noqa: E402
from analytics.report import (                      # noqa: E402
    format_dendrogram,
    format_history,
    run_decomposition,
)


def _unit_float(text: str) -> float:
    value = float(text)
    if not 0.0 <= value <= 1.0:
        raise argparse.ArgumentTypeError(f"{text} is outside [0, 1]")
    return value


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"{text} must be >= 1")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Modscope module decomposition pass.")
    parser.add_argument("input", help="Call-fact export (.json or .db)")
    parser.add_argument("--min-coupling", type=_unit_float, default=DEFAULT_MIN_COUPLING,
                        help="Minimum average coupling for a merge")
    parser.add_argument("--max-modules",  type=_positive_int, default=DEFAULT_MAX_MODULES,
                        help="Stop merging once this many clusters remain")
    parser.add_argument("--threshold",    type=_unit_float, default=DEFAULT_THRESHOLD,
                        help="Cohesion threshold for module extraction")
    parser.add_argument("--max-selected", type=_positive_int, default=None,
                        help="Cap for the greedy module selector")
    parser.add_argument("--out", default=str(DATA_DIR / "decomposition_report.json"),
                        help="Output JSON path")
    parser.add_argument("--text", action="store_true",
                        help="Print the dendrogram and merge history")
    parser.add_argument("--verbose", action="store_true",
                        help="Print each merge as it happens")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    in_path = Path(args.input)
    if not in_path.exists():
        parser.error(f"input not found: {in_path}")

    t0 = time.time()
    print(f"Loading {in_path.name}...", flush=True)
    try:
        graph = load_call_graph(in_path)
    except ValueError as exc:
        parser.error(str(exc))

    print(f"Clustering {len(graph)} classes...", flush=True)
    result, report = run_decomposition(
        graph,
        args.min_coupling,
        args.max_modules,
        args.threshold,
        args.max_selected,
        verbose=args.verbose,
    )
    report["parameters"] = {
        "min_coupling": args.min_coupling,
        "max_modules":  args.max_modules,
        "threshold":    args.threshold,
        "max_selected": args.max_selected,
    }
    report["elapsed_seconds"] = round(time.time() - t0, 2)

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w") as f:
        json.dump(report, f, indent=2)

    if args.text:
        print()
        print(format_dendrogram(result))
        print()
        print(format_history(result))

    print(f"\n{len(report['modules'])} modules from {len(result.active)} clusters → {out_path}",
          flush=True)
    for i, members in enumerate(report["modules"], 1):
        print(f"  Module {i}: {', '.join(members)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
