"""Typed model of a Bril program, decoded from and encoded to its JSON form.

There is no explicit tag on the wire telling labels, constants, value
operations and effect operations apart, so `code_from_json` picks the variant
by looking at which fields are present and which vocabulary `op` belongs to.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union


CONST_OPS = {"const"}

VALUE_OPS = {
    # arithmetic
    "add", "mul", "sub", "div",
    # comparison
    "eq", "lt", "gt", "le", "ge",
    # logic
    "not", "and", "or",
    # call may or may not produce a result; without dest it is a void call
    "call",
    "id",
    # memory
    "alloc", "load", "ptradd",
}

EFFECT_OPS = {
    "jmp", "br", "ret",
    "print", "nop",
    "free", "store",
}

PRIM_TYPES = {"int", "bool"}

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class BrilParseError(ValueError):
    """Raised when JSON text does not have the shape of a Bril program."""


@dataclass(frozen=True)
class PrimType:
    name: str

    def to_json(self):
        return self.name

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class PtrType:
    pointee: "Type"

    def to_json(self):
        return {"ptr": self.pointee.to_json()}

    def __str__(self):
        return f"ptr<{self.pointee}>"


Type = Union[PrimType, PtrType]

INT = PrimType("int")
BOOL = PrimType("bool")

Literal = Union[bool, int]


@dataclass(frozen=True)
class Argument:
    name: str
    arg_type: Type

    def to_json(self):
        return {"name": self.name, "type": self.arg_type.to_json()}


@dataclass(frozen=True)
class Label:
    label: str

    def to_json(self):
        return {"label": self.label}


@dataclass(frozen=True)
class Constant:
    op: str
    dest: str
    dest_type: Type
    value: Literal

    def to_json(self):
        return {
            "op": self.op,
            "dest": self.dest,
            "type": self.dest_type.to_json(),
            "value": self.value,
        }


@dataclass(frozen=True)
class Value:
    op: str
    dest: Optional[str] = None
    dest_type: Optional[Type] = None
    args: Tuple[str, ...] = ()
    funcs: Tuple[str, ...] = ()
    labels: Tuple[str, ...] = ()

    def to_json(self):
        out: Dict[str, Any] = {"op": self.op}
        if self.dest is not None:
            out["dest"] = self.dest
        if self.dest_type is not None:
            out["type"] = self.dest_type.to_json()
        _put_lists(out, self)
        return out


@dataclass(frozen=True)
class Effect:
    op: str
    args: Tuple[str, ...] = ()
    funcs: Tuple[str, ...] = ()
    labels: Tuple[str, ...] = ()

    def to_json(self):
        out: Dict[str, Any] = {"op": self.op}
        _put_lists(out, self)
        return out


Instruction = Union[Constant, Value, Effect]
Code = Union[Label, Instruction]


@dataclass(frozen=True)
class Function:
    name: str
    args: Tuple[Argument, ...] = ()
    return_type: Optional[Type] = None
    instrs: Tuple[Code, ...] = ()

    def to_json(self):
        out: Dict[str, Any] = {"name": self.name}
        if self.args:
            out["args"] = [a.to_json() for a in self.args]
        if self.return_type is not None:
            out["type"] = self.return_type.to_json()
        out["instrs"] = [c.to_json() for c in self.instrs]
        return out


@dataclass(frozen=True)
class Program:
    functions: Tuple[Function, ...] = ()

    def to_json(self):
        return {"functions": [f.to_json() for f in self.functions]}


def _put_lists(out, instr):
    for field in ("args", "funcs", "labels"):
        items = getattr(instr, field)
        if items:
            out[field] = list(items)


# Decoding

def _expect_str(obj, key, where):
    val = obj.get(key)
    if not isinstance(val, str):
        raise BrilParseError(f"{where}: field {key!r} must be a string, got {val!r}")
    return val


def _str_list(obj, key, where) -> Tuple[str, ...]:
    val = obj.get(key, [])
    if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
        raise BrilParseError(f"{where}: field {key!r} must be a list of strings, got {val!r}")
    return tuple(val)


def type_from_json(obj, where="type") -> Type:
    """Decode `int`, `bool` or `{"ptr": T}` (nested to any depth)."""
    if isinstance(obj, str):
        if obj not in PRIM_TYPES:
            raise BrilParseError(f"{where}: unknown type {obj!r}")
        return INT if obj == "int" else BOOL
    if isinstance(obj, dict) and set(obj) == {"ptr"}:
        return PtrType(type_from_json(obj["ptr"], where))
    raise BrilParseError(f"{where}: malformed type {obj!r}")


def literal_from_json(val, where="value") -> Literal:
    # bool is a subclass of int, so check it first
    if isinstance(val, bool):
        return val
    if isinstance(val, int):
        if not INT64_MIN <= val <= INT64_MAX:
            raise BrilParseError(f"{where}: integer literal {val} does not fit in 64 bits")
        return val
    raise BrilParseError(f"{where}: literal must be a bool or an integer, got {val!r}")


def code_from_json(obj, where="instr") -> Code:
    """Pick the Label / Constant / Value / Effect variant for one JSON object.

    Checked in a fixed order: label, constant, value op, effect op. No variant
    is attempted speculatively; an object matching none is an error.
    """
    if not isinstance(obj, dict):
        raise BrilParseError(f"{where}: expected an object, got {obj!r}")

    if "op" not in obj:
        if "label" in obj:
            return Label(_expect_str(obj, "label", where))
        raise BrilParseError(f"{where}: unrecognized instruction shape {obj!r}")

    op = _expect_str(obj, "op", where)

    if op in CONST_OPS:
        if "dest" in obj and "type" in obj and "value" in obj and "args" not in obj:
            return Constant(
                op=op,
                dest=_expect_str(obj, "dest", where),
                dest_type=type_from_json(obj["type"], where),
                value=literal_from_json(obj["value"], where),
            )
        raise BrilParseError(f"{where}: unrecognized instruction shape for {op!r}: {obj!r}")

    if op in VALUE_OPS:
        if "value" in obj:
            raise BrilParseError(f"{where}: unrecognized instruction shape, {op!r} takes no 'value': {obj!r}")
        dest = _expect_str(obj, "dest", where) if "dest" in obj else None
        dest_type = type_from_json(obj["type"], where) if "type" in obj else None
        return Value(
            op=op,
            dest=dest,
            dest_type=dest_type,
            args=_str_list(obj, "args", where),
            funcs=_str_list(obj, "funcs", where),
            labels=_str_list(obj, "labels", where),
        )

    if op in EFFECT_OPS:
        extra = [k for k in ("dest", "type", "value") if k in obj]
        if extra:
            raise BrilParseError(f"{where}: unrecognized instruction shape, {op!r} takes no {extra}: {obj!r}")
        return Effect(
            op=op,
            args=_str_list(obj, "args", where),
            funcs=_str_list(obj, "funcs", where),
            labels=_str_list(obj, "labels", where),
        )

    raise BrilParseError(f"{where}: unknown op {op!r}")


def function_from_json(obj, where="function") -> Function:
    if not isinstance(obj, dict):
        raise BrilParseError(f"{where}: expected an object, got {obj!r}")
    name = _expect_str(obj, "name", where)
    where = f"function {name!r}"

    raw_args = obj.get("args", [])
    if not isinstance(raw_args, list):
        raise BrilParseError(f"{where}: field 'args' must be a list")
    args = []
    for a in raw_args:
        if not isinstance(a, dict) or "type" not in a:
            raise BrilParseError(f"{where}: malformed argument {a!r}")
        args.append(Argument(_expect_str(a, "name", where), type_from_json(a["type"], where)))

    return_type = type_from_json(obj["type"], where) if "type" in obj else None

    raw_instrs = obj.get("instrs", [])
    if not isinstance(raw_instrs, list):
        raise BrilParseError(f"{where}: field 'instrs' must be a list")
    instrs = tuple(code_from_json(ins, f"{where}, instr {i}") for i, ins in enumerate(raw_instrs))

    return Function(name=name, args=tuple(args), return_type=return_type, instrs=instrs)


def program_from_json(obj) -> Program:
    """Decode a whole program (the result of `json.load`)."""
    if not isinstance(obj, dict) or not isinstance(obj.get("functions"), list):
        raise BrilParseError("program: expected an object with a 'functions' list")
    return Program(tuple(function_from_json(f, f"function {i}") for i, f in enumerate(obj["functions"])))


def is_label(code) -> bool:
    return isinstance(code, Label)
