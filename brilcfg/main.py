"""Read a Bril program (JSON), build each function's CFG and print it.

Usage:
  python -m brilcfg.main prog.json [--format dot|blocks|json] [--vis] [--png cfg.png]
"""
import argparse
import json
import sys
from typing import List

from brilcfg.bril import BrilParseError, program_from_json
from brilcfg.build_cfg import build_cfg_for_function, cfg_to_json
from brilcfg.count_ops import count_ops
from brilcfg.render import cfg_dot, print_basic_blocks


def load_program(path: str):
    """Read and decode a program file.

    Raises OSError if the file cannot be read, and json.JSONDecodeError or
    BrilParseError if its contents are not a Bril program.
    """
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    return program_from_json(json.loads(text))


def report_anomalies(cfg):
    for msg in cfg.anomalies:
        print(f"[WARN] {cfg.function.name}: {msg}", file=sys.stderr)


def main(argv: List[str], out=None) -> int:
    if out is None:
        out = sys.stdout

    ap = argparse.ArgumentParser(description="Build control flow graphs for a Bril program.")
    ap.add_argument("path", help="Bril program in JSON form")
    ap.add_argument("--format", choices=["dot", "blocks", "json"], default="dot",
                    help="dot: add count + digraph per function; blocks: dump basic blocks; json: CFG as JSON")
    ap.add_argument("--vis", action="store_true", help="Also draw the CFGs with matplotlib")
    ap.add_argument("--png", type=str, default="cfg.png", help="Where --vis writes its picture")
    args = ap.parse_args(argv)

    try:
        program = load_program(args.path)
    except OSError as e:
        print(f"error: cannot read {args.path}: {e.strerror or e}", file=sys.stderr)
        return 1
    except (UnicodeDecodeError, RecursionError, json.JSONDecodeError, BrilParseError) as e:
        print(f"error: malformed program: {e}", file=sys.stderr)
        return 1

    cfgs = [build_cfg_for_function(f) for f in program.functions]
    for cfg in cfgs:
        report_anomalies(cfg)

    if args.format == "json":
        json.dump({"functions": [cfg_to_json(c) for c in cfgs]}, out, indent=2)
        out.write("\n")
    else:
        for cfg in cfgs:
            if args.format == "blocks":
                print_basic_blocks(cfg, out)
            else:
                print(f"add count: {count_ops(cfg.function, 'add')}", file=out)
                cfg_dot(cfg, out)

    if args.vis:
        from brilcfg.visualize import visualize_all

        saved = visualize_all(cfgs, args.png)
        if saved:
            print(f"Saved plot to {saved}", file=sys.stderr)

    return 0


def cli():
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    cli()
