import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, ClassVar, NamedTuple

from parse import nodes

if TYPE_CHECKING:
    from runtime.environment import Environment


class ObjectType(Enum):
    INTEGER = "INTEGER"
    DOUBLE = "DOUBLE"
    BOOLEAN = "BOOLEAN"
    STRING = "STRING"
    NULL = "NULL"
    ARRAY = "ARRAY"
    HASH = "HASH"
    RANGE = "RANGE"
    FUNCTION = "FUNCTION"
    BUILTIN = "BUILTIN"
    RETURN_VALUE = "RETURN_VALUE"
    ERROR = "ERROR"

    def __str__(self):
        return self.value

    __repr__ = __str__


class HashKey(NamedTuple):
    type: ObjectType
    val: int


class Object:
    type: ClassVar[ObjectType]

    def inspect(self) -> str:
        raise NotImplementedError

    def __str__(self):
        return self.inspect()


class Hashable:
    def hash_key(self) -> HashKey:
        raise NotImplementedError


@dataclass(frozen=True)
class Integer(Object, Hashable):
    type: ClassVar[ObjectType] = ObjectType.INTEGER
    val: int

    def inspect(self):
        return str(self.val)

    def hash_key(self):
        return HashKey(self.type, self.val)


@dataclass(frozen=True)
class Double(Object):
    type: ClassVar[ObjectType] = ObjectType.DOUBLE
    val: float

    def inspect(self):
        return repr(self.val)


@dataclass(frozen=True)
class Boolean(Object, Hashable):
    type: ClassVar[ObjectType] = ObjectType.BOOLEAN
    val: bool

    def inspect(self):
        return "true" if self.val else "false"

    def hash_key(self):
        return HashKey(self.type, 1 if self.val else 0)


@dataclass(frozen=True)
class String(Object, Hashable):
    type: ClassVar[ObjectType] = ObjectType.STRING
    val: str

    def inspect(self):
        return self.val

    def hash_key(self):
        # str.__hash__ is salted per process, so derive the key from a digest
        digest = hashlib.sha256(self.val.encode("utf-8", "surrogatepass")).digest()
        return HashKey(self.type, int.from_bytes(digest[:8], "big"))


@dataclass(frozen=True)
class Null(Object):
    type: ClassVar[ObjectType] = ObjectType.NULL

    def inspect(self):
        return "null"


@dataclass(frozen=True)
class Array(Object):
    type: ClassVar[ObjectType] = ObjectType.ARRAY
    elements: list[Object]

    def inspect(self):
        return f"[{', '.join(e.inspect() for e in self.elements)}]"


class HashPair(NamedTuple):
    key: Object
    val: Object


@dataclass(frozen=True)
class Hash(Object):
    type: ClassVar[ObjectType] = ObjectType.HASH
    pairs: dict[HashKey, HashPair]

    def inspect(self):
        entries = ", ".join(
            f"{key.inspect()}: {val.inspect()}" for key, val in self.pairs.values()
        )
        return f"{{{entries}}}"


@dataclass(frozen=True)
class Range(Object):
    type: ClassVar[ObjectType] = ObjectType.RANGE
    lo: int
    hi: int

    def inspect(self):
        return f"{self.lo}..{self.hi}"


@dataclass(frozen=True, eq=False)
class Function(Object):
    type: ClassVar[ObjectType] = ObjectType.FUNCTION
    params: list[nodes.Identifier]
    body: nodes.BlockStmt
    env: "Environment" = field(repr=False)

    def inspect(self):
        params = ", ".join(map(str, self.params))
        return f"fn({params}) {{\n{self.body}\n}}"


BuiltinFn = Callable[[list[Object]], Object]


@dataclass(frozen=True, eq=False)
class Builtin(Object):
    type: ClassVar[ObjectType] = ObjectType.BUILTIN
    fn: BuiltinFn

    def inspect(self):
        return "builtin function"


@dataclass(frozen=True)
class ReturnSignal(Object):
    type: ClassVar[ObjectType] = ObjectType.RETURN_VALUE
    val: Object

    def inspect(self):
        return self.val.inspect()


@dataclass(frozen=True)
class Error(Object):
    type: ClassVar[ObjectType] = ObjectType.ERROR
    message: str

    def inspect(self):
        return f"ERROR: {self.message}"


NULL = Null()
TRUE = Boolean(True)
FALSE = Boolean(False)


def to_boolean(val: bool) -> Boolean:
    return TRUE if val else FALSE


def is_truthy(obj: Object):
    return not isinstance(obj, Null) and obj != FALSE
