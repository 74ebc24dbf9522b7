import enum
from dataclasses import dataclass
from typing import Annotated, Generic, NamedTuple, Optional, TypeVar

import pytest

from metakit.custom_debug import (
    DebugError,
    custom_debug,
    debug_field,
    debug_repr,
    type_is_generic_about,
)

T = TypeVar("T")
U = TypeVar("U")


def test_parse():
    class Field:
        name: str
        bitmask: int

    Field = dataclass(custom_debug(Field))
    assert repr(Field(name="F", bitmask=16)) == 'Field { name: "F", bitmask: 16 }'


def test_impl_debug():
    class Field:
        name: str
        bitmask: int

    Field = dataclass(custom_debug(Field))
    debug = repr(Field(name="F", bitmask=0b00011100))
    assert debug.startswith('Field { name: "F",')


def test_custom_format():
    class Field:
        name: str
        bitmask: int = debug_field("0b{:08b}")

    Field = dataclass(custom_debug(Field))
    f = Field(name="F", bitmask=0b00011100)
    assert repr(f) == 'Field { name: "F", bitmask: 0b00011100 }'


def test_type_parameter():
    class Field(Generic[T]):
        value: T
        bitmask: int = debug_field("0b{:08b}")

    Field = dataclass(custom_debug(Field))
    f = Field(value="F", bitmask=0b00011100)
    assert repr(f) == 'Field { value: "F", bitmask: 0b00011100 }'
    assert Field.__debug_bounds__ == {"T": T}


def test_phantom_data():
    class Field(Generic[T]):
        marker: type[T]
        string: str
        bitmask: int = debug_field("0b{:08b}")

    Field = dataclass(custom_debug(Field))

    class NotDebug:
        pass

    f = Field(marker=NotDebug, string="s", bitmask=0b00011100)
    assert repr(f).endswith('string: "s", bitmask: 0b00011100 }')
    assert Field.__debug_bounds__ == {"T": type[T]}


def test_bound_trouble():
    class One(Generic[T]):
        value: T
        two: "Optional[Two[T]]"

    One = dataclass(custom_debug(One))

    class Two(Generic[T]):
        one: "One[T]"

    Two = dataclass(custom_debug(Two))

    one = One(value=1, two=None)
    assert repr(one) == "One { value: 1, two: None }"
    one.two = Two(one=one)
    assert repr(one) == "One { value: 1, two: Two { one: ... } }"
    assert One.__debug_bounds__ == {"T": T}


def test_associated_type():
    class Field(Generic[T]):
        values: "list[T.Value]"

    Field = dataclass(custom_debug(Field))
    assert type_is_generic_about("list[T.Value]", T) == "T.Value"
    assert Field.__debug_bounds__ == {"T": "T.Value"}
    assert repr(Field(values=[1, 2])) == "Field { values: [1, 2] }"


@pytest.mark.parametrize(
    "annotation, param, expected",
    [
        ("Field[T]", "T", "Field[T]"),
        ("T", "T", "T"),
        ("T", "U", None),
        ("Optional[Two[T]]", "T", "Two[T]"),
        ("Result[T, E]", "E", "Result[T, E]"),
        ("T.Value", "T", "T.Value"),
        ("T | None", "T", "T | None"),
        ("dict[str, int]", "T", None),
    ],
)
def test_type_is_generic_about_text(annotation, param, expected):
    assert type_is_generic_about(annotation, param) == expected


def test_type_is_generic_about_typing_objects():
    assert type_is_generic_about(list[T], T) == list[T]
    assert type_is_generic_about(T, T) is T
    assert type_is_generic_about(U, T) is None
    assert type_is_generic_about(Optional[list[T]], T) == list[T]
    assert type_is_generic_about(dict[str, int], T) is None


def test_type_is_generic_about_rejects_bad_param():
    with pytest.raises(DebugError):
        type_is_generic_about(int, 5)


def test_struct_level_format_with_field_override():
    class P:
        x: int
        y: str = debug_field("{:?}")

    P = dataclass(custom_debug(fmt="<{}>")(P))
    assert repr(P(1, "a")) == 'P { x: <1>, y: "a" }'


def test_display_of_bool():
    class Flag:
        on: bool

    Flag = dataclass(custom_debug(fmt="{}")(Flag))
    assert repr(Flag(True)) == "Flag { on: true }"


def test_escaped_braces():
    class Box:
        x: int = debug_field("{{{:?}}}")

    Box = dataclass(custom_debug(Box))
    assert repr(Box(1)) == "Box { x: {1} }"


def test_annotated_after_dataclass():
    class F:
        bitmask: Annotated[int, debug_field("{:#x}")]

    F = custom_debug(dataclass(F))
    assert repr(F(28)) == "F { bitmask: 0x1c }"


def test_marker_as_dataclass_default_is_rejected():
    @dataclass
    class Bad:
        x: int = debug_field("{:?}")

    with pytest.raises(DebugError):
        custom_debug(Bad)


def test_unit_class():
    class Unit:
        pass

    Unit = custom_debug(Unit)
    assert repr(Unit()) == "Unit"


def test_named_tuple_renders_as_tuple():
    class Pair(NamedTuple):
        left: int
        right: str

    Pair = custom_debug(Pair)
    assert repr(Pair(1, "a")) == 'Pair(1, "a")'


def test_enum_is_rejected():
    class Color(enum.Enum):
        RED = 1

    with pytest.raises(DebugError):
        custom_debug(Color)


def test_function_is_rejected():
    def f():
        return None

    with pytest.raises(DebugError):
        custom_debug(f)


@pytest.mark.parametrize("fmt", ["no placeholder", "{1}", "{", "}", "{:x?}", 5])
def test_invalid_patterns(fmt):
    with pytest.raises(DebugError):
        debug_field(fmt)


@pytest.mark.parametrize(
    "value, expected",
    [
        ('a"b\n', '"a\\"b\\n"'),
        (True, "true"),
        (False, "false"),
        (None, "None"),
        ([1, "x"], '[1, "x"]'),
        ((1,), "(1,)"),
        ((1, 2), "(1, 2)"),
        ({"k": None}, '{"k": None}'),
        (b"\x01\x02", "[1, 2]"),
        (float("nan"), "NaN"),
        (1.5, "1.5"),
        ("\x07", '"\\u{7}"'),
        (42, "42"),
    ],
)
def test_debug_repr(value, expected):
    assert debug_repr(value) == expected


def test_debug_repr_cyclic_list():
    items = []
    items.append(items)
    assert debug_repr(items) == "[[...]]"