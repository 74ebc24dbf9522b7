# metakit

Class decorators and text expanders for the boilerplate that tends to
pile up around data records:

- `metakit.specifiers` and `metakit.bitfield`: records packed into a
  byte array, with fields declared by bit width;
- `metakit.builder`: a chaining builder for a class with named fields;
- `metakit.custom_debug`: a `Name { field: value }` style `repr`, with a
  format pattern per field;
- `metakit.seq`: repeat a block of token text over a numeric range and
  paste the counter into names;
- `metakit.sorted`: check that enum members and `match` arms are written
  in alphabetical order.

Only the standard library is needed.

## Installation

```
pip install metakit
```

To run the tests:

```
pip install "metakit[test]"
pytest
```

## Bit-packed records

`specifier(bits)` returns a `Specifier` for a field 1 to 64 bits wide;
`B1` to `B64` are ready-made. A specifier has `bits`, `bytes` (the size
of the narrowest unsigned integer holding it: 1, 2, 4 or 8), `uint_bits`
and `max_value`. Widths outside 1..64 raise `ValueError`, non-integers
`TypeError`.

`bitfield` turns a class whose annotations are specifiers into a
`Bitfield`. Fields are laid out in declaration order, most significant
bit first, and each is read and written as a plain attribute:

```python
from metakit.bitfield import bitfield
from metakit.specifiers import B1, B3, B4, B24

@bitfield
class MyFourBytes:
    a: B1
    b: B3
    c: B4
    d: B24

record = MyFourBytes()
record.c = 14
assert record.c == 14
assert bytes(record) == b"\x0e\x00\x00\x00"
assert len(record) == 4
```

- The annotations must be specifier objects, so do not use
  `from __future__ import annotations` in the defining module.
- A layout whose total width is not a multiple of 8 bits, an annotation
  that is not a specifier, or a reserved field name (`_data`, `_size`,
  `_fields`) raises `BitfieldError` at decoration time.
- Setting a value outside `0..max_value` raises `ValueError`; a
  non-integer raises `TypeError` (booleans count as 0 and 1).
- `MyFourBytes(data)` starts from existing bytes, which must have exactly
  the record's size. Records compare equal by type and content, are
  hashable, and have a `repr` such as `MyFourBytes(a=0, b=0, c=14, d=0)`.

## Builders

`builder` gives a class a static `builder()` method returning a `Builder`
with one chaining setter per field and a `build()` method:

```python
from typing import Optional
from metakit.builder import builder, each

@builder
class Command:
    executable: str
    args: list[str] = each("arg")
    env: list[str]
    current_dir: Optional[str]

command = (
    Command.builder()
    .executable("cargo")
    .arg("build")
    .arg("--release")
    .build()
)
assert command.args == ["build", "--release"]
assert command.current_dir is None
```

- Optional fields (`Optional[X]`, `Union[X, None]`, `X | None`) start as
  `None`; list fields start empty and their setter takes any iterable.
- Every other field must be set; otherwise `build()` raises
  `BuilderError` with the message `<field> is not set`.
- `each("name")` as a list field's default adds a setter of that name
  that appends one item. If it equals the field's name, it replaces the
  whole-list setter. The marker is removed from the class.
- `build()` creates the instance without calling `__init__` and stores a
  shallow copy of every value.
- `BuilderError` is also raised for: `each` on a field that is not a
  list, an optional list, a field default other than `each(...)`, an
  invalid `each` name, and a method name that clashes with another or
  with `build`. `ClassVar` annotations are skipped.

## Custom debug output

`custom_debug` gives a class a `repr` such as
`Field { name: "F", bitmask: 0b00011100 }`. It can be used bare or as
`custom_debug(fmt="...")` to change the default pattern for all fields.
`debug_field(fmt)` sets one field's pattern, either as the field's
default (the default is then removed from the class) or inside
`Annotated`:

```python
from dataclasses import dataclass
from typing import Annotated
from metakit.custom_debug import custom_debug, debug_field

@custom_debug
@dataclass
class Field:
    name: str
    bitmask: Annotated[int, debug_field("0b{:08b}")]

assert repr(Field("F", 0b00011100)) == 'Field { name: "F", bitmask: 0b00011100 }'
```

In a pattern, `{:?}` is the value through `debug_repr`, `{}` its plain
text form (booleans as `true`/`false`), and any other `{:spec}` is
`format(value, spec)`; `{{` and `}}` are literal braces. A pattern that
never uses the value, refers to another argument, or is unbalanced
raises `DebugError`. The default pattern is `{:?}`.

- `debug_repr(value)` quotes strings with escapes, writes booleans as
  `true`/`false`, bytes as a list of numbers, renders lists, tuples,
  sets and dicts recursively (with cycle markers), and uses `repr` for
  everything else.
- Classes without fields render as their name; named tuples render as
  `Name(a, b)`. Enums are rejected with `DebugError`. Patterns set on a
  decorated base class carry over to subclasses.
- `type_is_generic_about(annotation, param)` returns the part of an
  annotation that depends on a type parameter (a `TypeVar` or its name),
  or `None`. For every class type parameter, the result is stored in the
  class's `__debug_bounds__` dict.

## Sequence expansion

`seq(text)` expands a header `N in START..STOP { body }` (or
`START..=STOP` for an inclusive range) and returns the resulting tokens
joined by spaces:

```python
from metakit.seq import seq

assert seq("N in 0..3 { x#N = N; }") == "x0 = 0 ; x1 = 1 ; x2 = 2 ;"
assert seq("N in 0..3 { [ #( N , )* ] }") == "[0 , 1 , 2 ,]"
```

- Without a `#( ... )*` section the whole body is repeated once per
  counter value; with one, only that section is repeated and a bare `N`
  outside it raises `SeqError`.
- `name#N` becomes one name with the counter appended; `#N` alone
  becomes the number.
- Bounds may be decimal, `0x`, `0o` or `0b` literals with underscores
  and integer suffixes. `//` and `/* */` comments are dropped.
- `eseq` is the same expansion for expression bodies.
- `tokenize`, `contains_loop` and `expand` expose the steps underneath,
  working on `Token` values. Malformed headers, unbalanced brackets and
  `#{ ... }` raise `SeqError`.

## Sortedness checks

`sorted_enum` checks that an `Enum`'s members are declared in
alphabetical order, raising `SortedError("<later> should sort before
<earlier>")` at the first that is not; anything but an enum is rejected.

`check(func)` reads a function's source and checks every `match`
statement whose line above (or a comment line in the block of comments
above) is `# sorted`:

```python
from metakit.sorted import check

@check
def region(conference):
    # sorted
    match conference:
        case Conference.RustFest:
            return "Europe"
        case Conference.RustLatam:
            return "Latin America"
        case _:
            return "elsewhere"
```

Arms may be names, dotted paths or class patterns; a `_` arm must be
last; any other pattern is reported as unsupported. `check_source(source)`
runs the same check on source text and returns how many marked
statements it checked. `idents_in_order(names)` checks any sequence of
names. `SortedError` carries `lineno` and `col_offset` where known.
`check` returns the function unchanged and raises `SortedError` if its
source cannot be found or parsed.

## What it does not do

Everything happens at run time in Python: the decorators check and
rewrite classes when they are defined, and `seq` returns text rather
than running or compiling it. There is no command-line tool. Bitfield
members are unsigned integers only; enums and booleans cannot be used as
field types.