"""Count instructions of a given op in a Bril function."""
from brilcfg.bril import Value


def count_ops(function, op, kinds=(Value,)) -> int:
    """Number of instructions in `function` that are one of `kinds` with this `op`.

    Labels never match. Pass e.g. `kinds=(Value, Effect)` to count across kinds.
    """
    return sum(1 for code in function.instrs if isinstance(code, kinds) and code.op == op)
