import math
from dataclasses import dataclass

import pytest

import monkey
from common.errors import InternalError
from parse import nodes
from parse.errors import ParseError
from runtime.builtins import BUILTINS
from runtime.environment import Environment
from runtime.interpreter import Interpreter, trunc_div, wrap_i64
from runtime.objects import (
    FALSE,
    NULL,
    TRUE,
    Array,
    Builtin,
    Double,
    Error,
    Function,
    Hash,
    Integer,
    Range,
    String,
)


def run(src):
    return monkey.evaluate(src)


def ints(*vals):
    return Array([Integer(v) for v in vals])


# --- Numbers ---


@pytest.mark.parametrize(
    "src,expected",
    [
        ("5", 5),
        ("10", 10),
        ("-5", -5),
        ("-10", -10),
        ("5 + 5 + 5 + 5 - 10", 10),
        ("2 * 2 * 2 * 2 * 2", 32),
        ("-50 + 100 + -50", 0),
        ("5 * 2 + 10", 20),
        ("5 + 2 * 10", 25),
        ("20 + 2 * -10", 0),
        ("50 / 2 * 2 + 10", 60),
        ("2 * (5 + 10)", 30),
        ("3 * 3 * 3 + 10", 37),
        ("3 * (3 * 3) + 10", 37),
        ("(5 + 10 * 2 + 15 / 3) * 2 + -10", 50),
        ("5 / 2", 2),
        ("-7 / 2", -3),
        ("7 / -2", -3),
        ("7 % 3", 1),
        ("-7 % 3", -1),
        ("7 % -3", 1),
        ("9223372036854775807 + 1", -(2**63)),
        ("-9223372036854775807 - 2", 2**63 - 1),
        ("4611686018427387904 * 2", -(2**63)),
    ],
)
def test_integer_arithmetic(src, expected):
    assert run(src) == Integer(expected)


@pytest.mark.parametrize(
    "src,expected",
    [
        ("5.0 / 2", 2.5),
        ("1.5 + 1", 2.5),
        ("2 * 0.5", 1.0),
        ("-1.5", -1.5),
        ("3 - 0.5", 2.5),
        ("7.5 % 2", 1.5),
        ("-7.5 % 2", -1.5),
    ],
)
def test_double_arithmetic(src, expected):
    assert run(src) == Double(expected)


@pytest.mark.parametrize("src", ["1 / 0", "1 % 0", "1.0 / 0", "1 / 0.0", "2.5 % 0"])
def test_division_by_zero(src):
    assert run(src) == Error("division by zero")


@pytest.mark.parametrize(
    "src",
    [
        "1" + "0" * 400 + ".0 % 2.0",
        "let big = 1" + "0" * 300 + ".0; (big * big) % 3",
    ],
)
def test_modulo_of_infinite_double_is_nan(src):
    result = run(src)
    assert isinstance(result, Double)
    assert math.isnan(result.val)


def test_helpers():
    assert wrap_i64(2**63) == -(2**63)
    assert wrap_i64(-(2**63) - 1) == 2**63 - 1
    assert wrap_i64(42) == 42
    assert trunc_div(-7, 2) == -3
    assert trunc_div(7, 2) == 3
    assert trunc_div(-8, -2) == 4


# --- Booleans ---


@pytest.mark.parametrize(
    "src,expected",
    [
        ("true", True),
        ("false", False),
        ("1 < 2", True),
        ("1 > 2", False),
        ("1 < 1", False),
        ("1 > 1", False),
        ("1 <= 1", True),
        ("2 >= 3", False),
        ("1 == 1", True),
        ("1 != 1", False),
        ("1 == 2", False),
        ("1 != 2", True),
        ("1 == 1.0", True),
        ("1 < 1.5", True),
        ("true == true", True),
        ("false == false", True),
        ("true == false", False),
        ("true != false", True),
        ("false != true", True),
        ("(1 < 2) == true", True),
        ("(1 < 2) == false", False),
        ("(1 > 2) == true", False),
        ("(1 > 2) == false", True),
        ('"a" < "b"', True),
        ('"abc" == "abc"', True),
        ('"abc" != "abd"', True),
        ('"b" >= "a"', True),
        ('"a" == 1', False),
        ("[1, 2] == [1, 2]", True),
        ("!true", False),
        ("!false", True),
        ("!5", False),
        ("!!true", True),
        ("!!false", False),
        ("!!5", True),
    ],
)
def test_boolean_expressions(src, expected):
    assert run(src) is (TRUE if expected else FALSE)


@pytest.mark.parametrize(
    "src,expected",
    [
        ("true && false", False),
        ("true && true", True),
        ("false || true", True),
        ("false || false", False),
        ("1 && 2", True),
        ("0 || false", True),
        ("false && missing", False),
        ("true || missing", True),
        ("(1 < 2) && (2 < 3)", True),
    ],
)
def test_logical_operators(src, expected):
    assert run(src) is (TRUE if expected else FALSE)


# --- Control flow ---


@pytest.mark.parametrize(
    "src,expected",
    [
        ("if (true) { 10 }", Integer(10)),
        ("if (false) { 10 }", NULL),
        ("if (1) { 10 }", Integer(10)),
        ("if (1 < 2) { 10 }", Integer(10)),
        ("if (1 > 2) { 10 }", NULL),
        ("if (1 > 2) { 10 } else { 20 }", Integer(20)),
        ("if (1 < 2) { 10 } else { 20 }", Integer(10)),
        ("if (true) { }", NULL),
    ],
)
def test_if_else(src, expected):
    assert run(src) == expected


@pytest.mark.parametrize(
    "src,expected",
    [
        ("return 10;", Integer(10)),
        ("return 10; 9;", Integer(10)),
        ("return 2 * 5; 9;", Integer(10)),
        ("9; return 2 * 5; 9;", Integer(10)),
        ("return;", NULL),
        ("if (10 > 1) { if (10 > 1) { return 10; } return 1; }", Integer(10)),
        ("let f = fn(x) { return x; x + 10; }; f(10);", Integer(10)),
        (
            "let f = fn(x) { let result = x + 10; return result; return 10; }; f(10);",
            Integer(20),
        ),
        (
            "let f = fn(x) { if (x > 0) { return x; } return 0 - x; }; f(-5);",
            Integer(5),
        ),
        (
            "let f = fn() { if (true) { if (true) { return 1; } } 2 }; f() + 10",
            Integer(11),
        ),
    ],
)
def test_return_statements(src, expected):
    assert run(src) == expected


def test_while_accumulates_in_enclosing_scope():
    src = """
    let i = 0;
    let sum = 0;
    while (i < 5) {
        let sum = sum + i;
        let i = i + 1;
    }
    sum
    """
    assert run(src) == Integer(10)


def test_while_evaluates_to_null():
    assert run("while (false) { 1 }") == NULL


def test_return_escapes_while_loop():
    src = """
    let f = fn() {
        let i = 0;
        while (true) {
            if (i == 3) { return i; }
            let i = i + 1;
        }
    };
    f()
    """
    assert run(src) == Integer(3)


def test_error_stops_while_loop():
    assert run("while (true) { 1 + true }") == Error(
        "type mismatch: INTEGER + BOOLEAN"
    )


# --- Errors ---


@pytest.mark.parametrize(
    "src,expected",
    [
        ("5 + true;", "type mismatch: INTEGER + BOOLEAN"),
        ("5 + true; 5;", "type mismatch: INTEGER + BOOLEAN"),
        ("-true", "unknown operator: -BOOLEAN"),
        ('-"a"', "unknown operator: -STRING"),
        ("true + false;", "unknown operator: BOOLEAN + BOOLEAN"),
        ("true + false + true + false;", "unknown operator: BOOLEAN + BOOLEAN"),
        ("5; true + false; 5", "unknown operator: BOOLEAN + BOOLEAN"),
        ("if (10 > 1) { true + false; }", "unknown operator: BOOLEAN + BOOLEAN"),
        (
            "if (10 > 1) { if (10 > 1) { return true + false; } return 1; }",
            "unknown operator: BOOLEAN + BOOLEAN",
        ),
        ("foobar", "identifier not found: foobar"),
        ('"Hello" - "World"', "unknown operator: STRING - STRING"),
        ('"a" * "b"', "unknown operator: STRING * STRING"),
        ('1 * "a"', "type mismatch: INTEGER * STRING"),
        ("1.5 + true", "type mismatch: DOUBLE + BOOLEAN"),
        ("1 < 2 && 2 < 3", "type mismatch: INTEGER < BOOLEAN"),
        ('"ab" * 9223372036854775807', "string repetition too long"),
        ('{"name": "Monkey"}[fn(x) { x }];', "unusable as hash key: FUNCTION"),
        ("{[1]: 2}", "unusable as hash key: ARRAY"),
        ('{"a": 1}[[1]]', "unusable as hash key: ARRAY"),
        ("1(2)", "not a function: INTEGER"),
        ("1[0]", "index operator not supported: INTEGER"),
        ("[1] * [2]", "unknown operator: ARRAY * ARRAY"),
        ("[1] + 1", "type mismatch: ARRAY + INTEGER"),
        ("1..true", "type mismatch: INTEGER .. BOOLEAN"),
        ("[missing]", "identifier not found: missing"),
        ("len(missing)", "identifier not found: missing"),
        ("let x = missing; 5", "identifier not found: missing"),
        ("fn(x, y) { y }(1)", "identifier not found: y"),
    ],
)
def test_error_handling(src, expected):
    assert run(src) == Error(expected)


@pytest.mark.parametrize(
    "src",
    [
        "missing + puts(1)",
        "[missing, puts(1)]",
        "let f = fn(a, b) { a }; f(missing, puts(1))",
        "missing(puts(1))",
        "{missing: puts(1)}",
        '{"k": missing, 2: puts(1)}',
        "if (missing) { puts(1) }",
        "while (true) { missing; puts(1) }",
        "let x = missing; puts(1)",
        "puts(missing)",
    ],
)
def test_error_skips_remaining_evaluation(src, capsys):
    assert run(src) == Error("identifier not found: missing")
    assert capsys.readouterr().out == ""


def test_error_inspect_format():
    assert run("5 + true").inspect() == "ERROR: type mismatch: INTEGER + BOOLEAN"


def test_parse_errors_are_raised():
    with pytest.raises(ParseError) as exc_info:
        run("let = 1;")
    errors = exc_info.value.errors
    assert errors[0] == "expected next token to be IDENT, got = instead"
    assert str(exc_info.value) == "; ".join(errors)


def test_unknown_node_type_is_an_internal_error():
    @dataclass(frozen=True)
    class Unknown(nodes.ExprNode):
        pass

    stmt = nodes.ExprStmt(1, 1, Unknown(1, 1))
    with pytest.raises(InternalError, match="interpreter"):
        Interpreter().evaluate(stmt, Environment.new_root())


# --- Bindings and functions ---


@pytest.mark.parametrize(
    "src,expected",
    [
        ("let a = 5; a;", 5),
        ("let a = 5 * 5; a;", 25),
        ("let a = 5; let b = a; b;", 5),
        ("let a = 5; let b = a; let c = a + b + 5; c;", 15),
        ("let a = 1;", 1),
    ],
)
def test_let_statements(src, expected):
    assert run(src) == Integer(expected)


def test_empty_program_is_null():
    assert run("") == NULL


def test_function_object():
    fn = run("fn(x) { x + 2; };")
    assert isinstance(fn, Function)
    assert [p.name for p in fn.params] == ["x"]
    assert str(fn.body) == "(x + 2)"


@pytest.mark.parametrize(
    "src,expected",
    [
        ("let identity = fn(x) { x; }; identity(5);", 5),
        ("let identity = fn(x) { return x; }; identity(5);", 5),
        ("let double = fn(x) { x * 2; }; double(5);", 10),
        ("let add = fn(x, y) { x + y; }; add(5, 5);", 10),
        ("let add = fn(x, y) { x + y; }; add(5 + 5, add(5, 5));", 20),
        ("fn(x) { x; }(5)", 5),
        ("fn(x) { x }(1, 2)", 1),
        ("let x = 1; let f = fn() { let x = 2; x }; f() + x", 3),
    ],
)
def test_function_application(src, expected):
    assert run(src) == Integer(expected)


def test_closures():
    src = """
    let newAdder = fn(x) {
        fn(y) { x + y };
    };

    let addTwo = newAdder(2);
    addTwo(2);
    """
    assert run(src) == Integer(4)


def test_closure_outlives_defining_call():
    src = """
    let counter = fn(start) { fn() { start } };
    let a = counter(1);
    let b = counter(2);
    a() + b()
    """
    assert run(src) == Integer(3)


def test_recursive_function():
    src = """
    let fib = fn(n) {
        if (n < 2) { n } else { fib(n - 1) + fib(n - 2) }
    };
    fib(15)
    """
    assert run(src) == Integer(610)


def test_higher_order_functions():
    src = """
    let map = fn(arr, f) {
        let iter = fn(arr, acc) {
            if (len(arr) == 0) { return acc; }
            iter(rest(arr), push(acc, f(first(arr))))
        };
        iter(arr, []);
    };
    map([1, 2, 3], fn(x) { x * x })
    """
    assert run(src) == ints(1, 4, 9)


def test_user_bindings_shadow_builtins():
    assert run("let len = fn(x) { 42 }; len([1])") == Integer(42)


def test_custom_builtins():
    double = Builtin(lambda args: Integer(args[0].val * 2))
    assert monkey.evaluate("double(21)", builtins={"double": double}) == Integer(42)
    assert monkey.evaluate("len", builtins={}) == Error("identifier not found: len")


def test_environment_persists_between_runs():
    env = Environment.new_root()
    monkey.evaluate("let x = 40;", env)
    assert monkey.evaluate("x + 2", env) == Integer(42)


def test_apply_fn():
    interpreter = Interpreter()
    assert interpreter.apply_fn(BUILTINS["len"], [String("abc")]) == Integer(3)
    assert interpreter.apply_fn(Integer(1), []) == Error("not a function: INTEGER")


# --- Strings ---


@pytest.mark.parametrize(
    "src,expected",
    [
        ('"Hello World!"', "Hello World!"),
        ('"Hello" + " " + "World!"', "Hello World!"),
        ('"a" + 1', "a1"),
        ('"ab" * 3', "ababab"),
        ('"ab" * 0', ""),
        ('"tab\\there"', "tab\there"),
    ],
)
def test_strings(src, expected):
    assert run(src) == String(expected)


# --- Arrays and ranges ---


def test_array_literal():
    assert run("[1, 2 * 2, 3 + 3]") == ints(1, 4, 6)


@pytest.mark.parametrize(
    "src,expected",
    [
        ("[1, 2, 3][0]", Integer(1)),
        ("[1, 2, 3][1]", Integer(2)),
        ("[1, 2, 3][2]", Integer(3)),
        ("let i = 0; [1][i];", Integer(1)),
        ("[1, 2, 3][1 + 1];", Integer(3)),
        ("let myArray = [1, 2, 3]; myArray[2];", Integer(3)),
        (
            "let myArray = [1, 2, 3]; myArray[0] + myArray[1] + myArray[2];",
            Integer(6),
        ),
        ("let myArray = [1, 2, 3]; let i = myArray[0]; myArray[i]", Integer(2)),
        ("[1, 2, 3][3]", NULL),
        ("[1, 2, 3][5]", NULL),
        ("[1, 2, 3][-1]", Integer(3)),
        ("[1, 2, 3][-3]", Integer(1)),
        ("[1, 2, 3][-4]", NULL),
        ("[][0]", NULL),
    ],
)
def test_array_indexing(src, expected):
    assert run(src) == expected


@pytest.mark.parametrize(
    "src,expected",
    [
        ("[1, 2, 3, 4][1..2]", ints(2, 3)),
        ("[1, 2, 3][0..2]", ints(1, 2, 3)),
        ("[1, 2, 3][1..1]", ints(2)),
        ("[1, 2, 3][2..1]", NULL),
        ("[1, 2, 3][0..3]", NULL),
        ("[1, 2, 3][-1..1]", NULL),
    ],
)
def test_array_slicing(src, expected):
    assert run(src) == expected


def test_range_value():
    result = run("let lo = 1; lo..2 + 3")
    assert result == Range(1, 5)
    assert result.inspect() == "1..5"


@pytest.mark.parametrize(
    "src,expected",
    [
        ("[1, 2] + [3]", ints(1, 2, 3)),
        ("[] + []", ints()),
        ("[1, 2, 2, 3] - [2, 4]", ints(1, 2, 3)),
        ("[1, 2, 3] - [1, 2, 3]", ints()),
    ],
)
def test_array_operators(src, expected):
    assert run(src) == expected


# --- Hashes ---


def test_hash_literal():
    src = """
    let two = "two";
    {
        "one": 10 - 9,
        two: 1 + 1,
        "thr" + "ee": 6 / 2,
        4: 4,
        true: 5,
        false: 6
    }
    """
    result = run(src)
    assert isinstance(result, Hash)
    expected = {
        String("one").hash_key(): 1,
        String("two").hash_key(): 2,
        String("three").hash_key(): 3,
        Integer(4).hash_key(): 4,
        TRUE.hash_key(): 5,
        FALSE.hash_key(): 6,
    }
    assert {k: pair.val for k, pair in result.pairs.items()} == {
        k: Integer(v) for k, v in expected.items()
    }


@pytest.mark.parametrize(
    "src,expected",
    [
        ('{"foo": 5}["foo"]', Integer(5)),
        ('{"foo": 5}["bar"]', NULL),
        ('let key = "foo"; {"foo": 5}[key]', Integer(5)),
        ('{}["foo"]', NULL),
        ("{5: 5}[5]", Integer(5)),
        ("{true: 5}[true]", Integer(5)),
        ("{false: 5}[false]", Integer(5)),
        ('{"a": 1, "a": 2}["a"]', Integer(2)),
    ],
)
def test_hash_indexing(src, expected):
    assert run(src) == expected


@pytest.mark.parametrize(
    "src,expected",
    [
        ('{"a": 1, "b": 2} + {"b": 3, "c": 4}', "{a: 1, b: 3, c: 4}"),
        ('{"a": 1, "b": 2} - {"a": 0}', "{b: 2}"),
        ('{"a": 1} - {"z": 1}', "{a: 1}"),
        ("{} + {}", "{}"),
    ],
)
def test_hash_operators(src, expected):
    assert run(src).inspect() == expected
