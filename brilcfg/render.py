"""Print CFGs as Graphviz digraphs, or dump their basic blocks as JSON."""
import json
import re
import sys
from typing import List

from brilcfg.build_cfg import Cfg


DOT_KEYWORDS = {"node", "edge", "graph", "digraph", "subgraph", "strict"}

PLAIN_ID = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


def dot_id(name: str) -> str:
    """Turn a Bril label into a Graphviz identifier.

    '.' becomes '_'. Whatever is still not a plain identifier, or is a DOT
    keyword (case-insensitive), is written as a quoted string.
    """
    name = name.replace(".", "_")
    if PLAIN_ID.match(name) and name.lower() not in DOT_KEYWORDS:
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def dot_lines(cfg: Cfg) -> List[str]:
    lines = [f"digraph {dot_id(cfg.function.name)} {{"]
    for block in cfg.blocks:
        lines.append(f"\t{dot_id(block.label)};")
    for block in cfg.blocks:
        # Targets are not required to be declared nodes
        for succ in cfg.successors.get(block.label, []):
            lines.append(f"\t{dot_id(block.label)} -> {dot_id(succ)};")
    lines.append("}")
    return lines


def cfg_dot(cfg: Cfg, out=None):
    if out is None:
        out = sys.stdout
    for line in dot_lines(cfg):
        print(line, file=out)


def print_basic_blocks(cfg: Cfg, out=None):
    """Dump every block of a function with its instructions as indented JSON."""
    if out is None:
        out = sys.stdout
    print(f"Function: {cfg.function.name}", file=out)
    for block in cfg.blocks:
        print(f"Basic Block: {block.label}", file=out)
        for instr in cfg.instrs(block):
            print(json.dumps(instr.to_json(), indent=2), file=out)
