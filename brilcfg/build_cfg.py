"""Build a control flow graph from a Bril function."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from brilcfg.bril import Effect, Function, Instruction, is_label

# Ops that end a basic block
TERMINATORS = {"br", "jmp", "ret"}

ENTRY_LABEL = "entry"


def is_terminator(instr) -> bool:
    return isinstance(instr, Effect) and instr.op in TERMINATORS


@dataclass(frozen=True)
class BasicBlock:
    """A block name plus the positions of its instructions in `Function.instrs`."""
    label: str
    indices: Tuple[int, ...] = ()

    def __len__(self):
        return len(self.indices)


@dataclass
class Cfg:
    function: Function
    blocks: List[BasicBlock]
    successors: Dict[str, List[str]]
    predecessors: Dict[str, List[str]]
    anomalies: List[str] = field(default_factory=list)

    def instrs(self, block: BasicBlock) -> List[Instruction]:
        return block_instrs(self.function, block)

    @property
    def entry(self):
        return self.blocks[0].label if self.blocks else None

    @property
    def exits(self) -> List[str]:
        return [b.label for b in self.blocks if not self.successors.get(b.label)]


def block_instrs(function: Function, block: BasicBlock) -> List[Instruction]:
    return [function.instrs[i] for i in block.indices]


def form_blocks(function: Function) -> List[BasicBlock]:
    """Split a function body into basic blocks in one forward pass.

    Labels name the block that receives the instructions after them; they are
    never stored inside a block. A block that starts right after a terminator
    without a label of its own is called `<function>_bb<N>`, N being the number
    of blocks emitted so far.
    """
    instrs = function.instrs
    blocks: List[BasicBlock] = []

    label = ENTRY_LABEL
    explicit = False  # pending label came from a Label item
    body: List[int] = []

    for i, code in enumerate(instrs):
        if is_label(code):
            label = code.label
            explicit = True
            continue

        body.append(i)

        last = i + 1 == len(instrs)
        next_is_label = not last and is_label(instrs[i + 1])
        if last or next_is_label or is_terminator(code):
            blocks.append(BasicBlock(label, tuple(body)))
            body = []
            explicit = False
            if is_terminator(code) and not next_is_label:
                label = f"{function.name}_bb{len(blocks)}"

    # Trailing label with nothing after it still names an (empty) block
    if explicit:
        blocks.append(BasicBlock(label, ()))

    return blocks


@dataclass
class Edges:
    successors: Dict[str, List[str]]
    predecessors: Dict[str, List[str]]
    anomalies: List[str]


def build_edges(function: Function, blocks: List[BasicBlock]) -> Edges:
    """Compute successor and predecessor lists keyed by block label.

    Blocks with no predecessors get no entry in `predecessors`; blocks ending in
    `ret` or falling off the end get no entry in `successors`.
    """
    successors: Dict[str, List[str]] = {}
    predecessors: Dict[str, List[str]] = defaultdict(list)
    anomalies: List[str] = []
    seen = set()

    for idx, block in enumerate(blocks):
        if block.label in seen:
            anomalies.append(f"block label {block.label!r} is used by more than one block; edges merged")
        seen.add(block.label)

        # Empty block (trailing label only): nothing to inspect
        if not block.indices:
            continue

        term = function.instrs[block.indices[-1]]

        if is_terminator(term):
            if term.op == "ret":
                if term.labels:
                    anomalies.append(
                        f"block {block.label!r}: 'ret' carries labels {list(term.labels)}; ignored"
                    )
                continue
            targets = list(term.labels)
        elif idx + 1 < len(blocks):
            targets = [blocks[idx + 1].label]
        else:
            # Falling off the end of the function is an exit
            continue

        # Extend, so a label shared by two blocks keeps both out-edge lists
        successors.setdefault(block.label, []).extend(targets)
        for dst in targets:
            predecessors[dst].append(block.label)

    return Edges(successors, dict(predecessors), anomalies)


def build_cfg_for_function(function: Function) -> Cfg:
    blocks = form_blocks(function)
    edges = build_edges(function, blocks)
    return Cfg(
        function=function,
        blocks=blocks,
        successors=edges.successors,
        predecessors=edges.predecessors,
        anomalies=edges.anomalies,
    )


def cfg_to_json(cfg: Cfg) -> dict:
    """JSON view of a CFG: blocks with their instructions plus the edge maps."""
    blocks = [
        {"name": b.label, "instrs": [ins.to_json() for ins in cfg.instrs(b)]}
        for b in cfg.blocks
    ]
    result = {
        "name": cfg.function.name,
        "blocks": blocks,
        "cfg": {
            "entry": cfg.entry,
            "edges": {b.label: list(cfg.successors.get(b.label, [])) for b in cfg.blocks},
            "preds": {b.label: list(cfg.predecessors.get(b.label, [])) for b in cfg.blocks},
            "exits": cfg.exits,
        },
    }
    if cfg.function.args:
        result["args"] = [a.to_json() for a in cfg.function.args]
    if cfg.function.return_type is not None:
        result["type"] = cfg.function.return_type.to_json()
    return result
