from runtime.objects import Error, Object


def type_mismatch(left: Object, op: str, right: Object):
    return Error(f"type mismatch: {left.type} {op} {right.type}")


def unknown_infix_operator(left: Object, op: str, right: Object):
    return Error(f"unknown operator: {left.type} {op} {right.type}")


def unknown_prefix_operator(op: str, operand: Object):
    return Error(f"unknown operator: {op}{operand.type}")


def invalid_infix_operands(left: Object, op: str, right: Object):
    if left.type != right.type:
        return type_mismatch(left, op, right)
    return unknown_infix_operator(left, op, right)


def identifier_not_found(name: str):
    return Error(f"identifier not found: {name}")


def not_a_function(obj: Object):
    return Error(f"not a function: {obj.type}")


def unusable_as_hash_key(obj: Object):
    return Error(f"unusable as hash key: {obj.type}")


def index_not_supported(obj: Object):
    return Error(f"index operator not supported: {obj.type}")


def wrong_number_of_args(got: int, want: int):
    return Error(f"wrong number of arguments. got={got}, want={want}")


def unsupported_argument(fn_name: str, obj: Object):
    return Error(f"argument to `{fn_name}` not supported, got {obj.type}")


def argument_must_be(fn_name: str, expected: str, obj: Object):
    return Error(f"argument to `{fn_name}` must be {expected}, got {obj.type}")


def division_by_zero():
    return Error("division by zero")


def string_too_long():
    return Error("string repetition too long")
