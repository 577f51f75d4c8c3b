"""Build CFGs for a set of Bril programs and report per-function stats."""
from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
from tqdm import tqdm

from brilcfg.bril import BrilParseError, program_from_json
from brilcfg.build_cfg import build_cfg_for_function
from brilcfg.count_ops import count_ops


def bril_txt_to_json_str(path: str) -> str:
    with open(path, "r") as f:
        return subprocess.check_output(["bril2json"], stdin=f, text=True)


def read_program_json(path: Path) -> dict:
    if path.suffix == ".bril":
        return json.loads(bril_txt_to_json_str(str(path)))
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def collect_targets(input_paths: List[str]) -> List[Path]:
    targets: List[Path] = []
    for p in input_paths:
        path = Path(p)
        if path.is_file() and path.suffix in (".json", ".bril"):
            targets.append(path)
        elif path.is_dir():
            for child in path.iterdir():
                if child.is_file() and child.suffix in (".json", ".bril"):
                    targets.append(child)
    targets.sort()
    return targets


def function_stats(path: Path, program) -> List[Dict[str, Any]]:
    records = []
    for func in program.functions:
        cfg = build_cfg_for_function(func)
        records.append({
            "file": str(path),
            "function": func.name,
            "instrs": sum(len(b) for b in cfg.blocks),
            "blocks": len(cfg.blocks),
            "edges": sum(len(v) for v in cfg.successors.values()),
            "exits": len(cfg.exits),
            "add_count": count_ops(func, "add"),
            "anomalies": len(cfg.anomalies),
        })
    return records


def summarize(records: List[Dict[str, Any]]) -> pd.DataFrame:
    columns = ["file", "function", "instrs", "blocks", "edges", "exits", "add_count", "anomalies"]
    df = pd.DataFrame(records, columns=columns)
    return df.sort_values(by=["file", "function"], kind="stable").reset_index(drop=True)


def plot(df: pd.DataFrame, out_png: str | None = None):
    import matplotlib.pyplot as plt  # type: ignore

    if df.empty:
        return

    labels = [f"{Path(f).stem}:{fn}" for f, fn in zip(df["file"], df["function"])]
    xs = list(range(len(labels)))
    plt.figure(figsize=(max(8, len(labels) * 0.18), 4))
    plt.bar(xs, df["blocks"], label="blocks")
    plt.bar(xs, df["edges"], alpha=0.5, label="edges")
    plt.ylabel("Count")
    plt.title("Basic blocks and CFG edges per function")
    plt.legend()
    plt.xticks(xs, labels, rotation=90, fontsize=7)
    plt.tight_layout()
    if out_png:
        plt.savefig(out_png)
        print(f"Saved plot to {out_png}")
    else:
        plt.show()


def main(argv: List[str]):
    import argparse
    ap = argparse.ArgumentParser()
    ap.add_argument("paths", nargs="+", help=".json/.bril files or directories")
    ap.add_argument("--out", type=str, default="results_cfg.json", help="Write per-function records here")
    ap.add_argument("--plot", action="store_true", help="Show/save matplotlib plot of block and edge counts")
    ap.add_argument("--png", type=str, default=None, help="Save plot to PNG instead of showing")
    args = ap.parse_args(argv)

    targets = collect_targets(args.paths)
    if not targets:
        print("No .json or .bril files found.")
        return 0

    print(f"Target programs: {len(targets)}")

    records: List[Dict[str, Any]] = []
    skipped = 0
    for t in tqdm(targets):
        try:
            program = program_from_json(read_program_json(t))
        except (OSError, UnicodeDecodeError, subprocess.CalledProcessError,
                RecursionError, json.JSONDecodeError, BrilParseError) as e:
            print(f"[SKIP] {t}: {e}", file=sys.stderr)
            skipped += 1
            continue
        records.extend(function_stats(t, program))

    df = summarize(records)
    with pd.option_context("display.max_rows", None, "display.width", 120):
        print(df.to_string(index=False))

    print(f"\nPrograms analysed: {len(targets) - skipped}/{len(targets)}")
    print(f"Functions: {len(df)}")
    if not df.empty:
        print(f"Total blocks: {df['blocks'].sum()}")
        print(f"Total edges: {df['edges'].sum()}")
        print(f"Mean blocks per function: {df['blocks'].mean():.2f}")

    with open(args.out, "w") as f:
        json.dump(records, f, indent=2)
        print(f"Wrote results to {args.out}")

    if args.plot:
        plot(df, out_png=args.png)

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
