"""Tests for decoding and encoding Bril programs."""
import json

import pytest

from brilcfg.bril import (
    BOOL, INT, Argument, BrilParseError, Constant, Effect, Function, Label,
    PtrType, Value, code_from_json, function_from_json, program_from_json,
    type_from_json,
)


def test_label():
    assert code_from_json({"label": "loop"}) == Label("loop")


def test_constant_int_and_bool():
    c = code_from_json({"op": "const", "dest": "x", "type": "int", "value": 4})
    assert c == Constant("const", "x", INT, 4)
    b = code_from_json({"op": "const", "dest": "b", "type": "bool", "value": True})
    assert b == Constant("const", "b", BOOL, True)
    assert b.value is True


def test_value_op():
    v = code_from_json({"op": "add", "dest": "z", "type": "int", "args": ["x", "y"]})
    assert v == Value("add", "z", INT, ("x", "y"))
    assert v.funcs == () and v.labels == ()


def test_void_call_is_value_without_dest():
    v = code_from_json({"op": "call", "funcs": ["f"], "args": ["a"]})
    assert isinstance(v, Value)
    assert v.dest is None and v.dest_type is None
    assert v.funcs == ("f",)


def test_effect_op():
    e = code_from_json({"op": "br", "args": ["cond"], "labels": ["then", "else"]})
    assert e == Effect("br", ("cond",), (), ("then", "else"))


def test_nested_pointer_type():
    t = type_from_json({"ptr": {"ptr": "int"}})
    assert t == PtrType(PtrType(INT))
    assert str(t) == "ptr<ptr<int>>"
    v = code_from_json({"op": "alloc", "dest": "p", "type": {"ptr": "bool"}, "args": ["n"]})
    assert v.dest_type == PtrType(BOOL)


@pytest.mark.parametrize("obj", [
    {"op": "frobnicate", "args": []},
    {"dest": "x", "type": "int"},
    {"op": "const", "dest": "x", "type": "int", "value": 1, "args": ["y"]},
    {"op": "const", "dest": "x", "value": 1},
    {"op": "const", "dest": "x", "type": "int", "value": 1.5},
    {"op": "const", "dest": "x", "type": "int", "value": 2 ** 63},
    {"op": "add", "dest": "x", "type": "float", "args": ["a", "b"]},
    {"op": "print", "args": "x"},
    {"op": "print", "dest": "x", "type": "int", "args": ["y"]},
    {"op": "nop", "value": 1},
    {"op": "add", "dest": "x", "type": "int", "args": ["a", "b"], "value": 3},
    {"op": 3},
    ["not", "an", "object"],
])
def test_malformed_instructions(obj):
    with pytest.raises(BrilParseError):
        code_from_json(obj)


def test_error_mentions_function_and_index():
    with pytest.raises(BrilParseError, match=r"function 'main', instr 1"):
        function_from_json({"name": "main", "instrs": [{"op": "nop"}, {"op": "bogus"}]})


def test_function_defaults():
    f = function_from_json({"name": "main"})
    assert f == Function("main")
    assert f.args == () and f.instrs == () and f.return_type is None


def test_function_args_and_return_type():
    f = function_from_json({
        "name": "inc",
        "args": [{"name": "n", "type": "int"}],
        "type": "int",
        "instrs": [],
    })
    assert f.args == (Argument("n", INT),)
    assert f.return_type == INT


def test_program_requires_functions():
    with pytest.raises(BrilParseError):
        program_from_json({"funcs": []})
    assert program_from_json({"functions": []}).functions == ()


def test_to_json_matches_wire_shape():
    src = {
        "functions": [{
            "name": "main",
            "args": [{"name": "p", "type": {"ptr": "int"}}],
            "instrs": [
                {"op": "const", "dest": "one", "type": "int", "value": 1},
                {"label": "body"},
                {"op": "load", "dest": "v", "type": "int", "args": ["p"]},
                {"op": "call", "funcs": ["log"], "args": ["v"]},
                {"op": "ret"},
            ],
        }]
    }
    prog = program_from_json(json.loads(json.dumps(src)))
    assert prog.to_json() == src


def test_model_is_hashable():
    a = code_from_json({"op": "print", "args": ["x"]})
    b = code_from_json({"op": "print", "args": ["x"]})
    assert len({a, b}) == 1
