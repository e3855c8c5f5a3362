"""
Record reflection: fields, tags, and live bindings.

A *record* is a class declaring annotated fields, either a dataclass or a plain
class. Its fields carry their raw metadata in one of two places:

    @dataclass
    class Options:
        verbose: Annotated[bool, Tag('short:"v" description:"enable verbose"')] = False
        name: str = field(default="", metadata={"tag": 'long:"name" default:"anon"'})

Overview
- Tag: str marker recognized inside typing.Annotated.
- is_record(tp): does a declared type describe a record?
- fields(record_type): ordered Field descriptors (declaration order, bases first).
- Binding: live, non-owning reference to one attribute of a record instance.
- zero(tp) / convert(text, tp, current): value helpers used when defaults are
  cleared and re-applied.
"""
import dataclasses
import functools
import inspect
import types
import typing
from collections.abc import Mapping, MutableMapping, MutableSequence, MutableSet, Sequence, Set
from enum import Enum

from .faults import MalformedDefaultError
from .utils import Unset

_SCALARS = (str, bytes, bytearray, int, float, complex, bool, tuple, list, dict, set, frozenset, Enum)

_ZEROS = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    str: "",
    bytes: b"",
}

_TRUTHS = {
    "true": True, "1": True, "yes": True, "on": True,
    "false": False, "0": False, "no": False, "off": False,
}


class Tag(str):
    """
    Raw struct-tag string attached to a field through typing.Annotated.
    """
    __slots__ = ()

    def __repr__(self):
        return f"Tag({str.__repr__(self)})"


def _strip_annotated(tp):
    """
    Split Annotated[T, ...] into (T, raw tag). The tag is "" without a Tag marker.
    """
    if typing.get_origin(tp) is typing.Annotated:
        tags = [item for item in tp.__metadata__ if isinstance(item, Tag)]
        return tp.__origin__, " ".join(tags)
    return tp, ""


def _unwrap_optional(tp):
    """
    Split `T | None` into (T, True); any other type answers (tp, False).
    """
    if typing.get_origin(tp) not in (typing.Union, types.UnionType):
        return tp, False
    args = typing.get_args(tp)
    if type(None) not in args:
        return tp, False
    rest = tuple(arg for arg in args if arg is not type(None))
    if len(rest) == 1:
        return rest[0], True
    return typing.Union[rest], True


def is_record(tp, /):
    if not isinstance(tp, type) or issubclass(tp, _SCALARS):
        return False
    if dataclasses.is_dataclass(tp):
        return True
    return any(inspect.get_annotations(base) for base in tp.__mro__ if base is not object)


class Field:
    """
    One declared field of a record type.

    Properties
    - name: attribute name.
    - type: declared type with Annotated metadata removed.
    - tag: raw struct-tag string ("" when the field carries none).
    - index: position in declaration order.
    - exported: False for names starting with an underscore.
    - optional: declared as `T | None`.
    - target: declared type with None removed from an optional union.
    """
    __slots__ = ("_name", "_type", "_tag", "_index")

    def __init__(self, name, type, tag="", index=0):
        self._name = name
        self._type = type
        self._tag = tag
        self._index = index

    @property
    def name(self):
        return self._name

    @property
    def type(self):
        return self._type

    @property
    def tag(self):
        return self._tag

    @property
    def index(self):
        return self._index

    @property
    def exported(self):
        return not self._name.startswith("_")

    @property
    def optional(self):
        return _unwrap_optional(self._type)[1]

    @property
    def target(self):
        return _unwrap_optional(self._type)[0]

    def __eq__(self, other):
        if not isinstance(other, Field):
            return NotImplemented
        return (self._name, self._type, self._tag, self._index) == (other._name, other._type, other._tag, other._index)

    def __hash__(self):
        return hash((self._name, self._tag, self._index))

    def __repr__(self):
        return f"Field(name={self._name!r}, type={self._type!r}, tag={self._tag!r})"

    def __rich_repr__(self):
        yield "name", self._name
        yield "type", self._type
        yield "tag", self._tag, ""


@functools.lru_cache(maxsize=256)
def fields(record_type, /):
    """
    Answer the Field descriptors of a record type in declaration order.

    Hints are resolved with typing.get_type_hints, so string annotations must
    be resolvable from the module defining the record. ClassVar annotations are
    not fields.
    """
    if not is_record(record_type):
        raise TypeError(f"{record_type!r} is not a record type")

    metadata = {}
    if dataclasses.is_dataclass(record_type):
        metadata = {field.name: field.metadata.get("tag", "") for field in dataclasses.fields(record_type)}

    result = []
    for name, hint in typing.get_type_hints(record_type, include_extras=True).items():
        declared, tag = _strip_annotated(hint)
        if typing.get_origin(declared) is typing.ClassVar or declared is typing.ClassVar:
            continue
        tag = " ".join(filter(None, (tag, metadata.get(name, ""))))
        result.append(Field(name, declared, tag, len(result)))
    return tuple(result)


class Binding:
    """
    Live reference to one attribute of a record instance.

    The binding borrows the record: it never copies it, so every read and
    write goes straight to the caller's object. A frozen dataclass instance
    yields a binding that is readable but not settable.
    """
    __slots__ = ("_record", "_field")

    def __init__(self, record, field, /):
        self._record = record
        self._field = field

    @property
    def record(self):
        return self._record

    @property
    def field(self):
        return self._field

    @property
    def name(self):
        return self._field.name

    @property
    def settable(self):
        params = getattr(type(self._record), "__dataclass_params__", None)
        return not (params is not None and params.frozen)

    def get(self):
        value = getattr(self._record, self._field.name, Unset)
        if value is Unset:
            return zero(self._field.type)
        return value

    def set(self, value, /):
        if not self.settable:
            raise AttributeError(f"field {self._field.name!r} of {type(self._record).__name__!r} is not settable")
        setattr(self._record, self._field.name, value)

    def __repr__(self):
        return f"Binding({type(self._record).__name__}.{self._field.name}={self.get()!r})"


def _concrete(origin):
    """
    Map abstract collection origins onto the concrete class to build.
    """
    if not isinstance(origin, type):
        return None
    if origin in (Sequence, MutableSequence):
        return list
    if origin in (Mapping, MutableMapping):
        return dict
    if origin in (Set, MutableSet):
        return set
    if issubclass(origin, (list, tuple, dict, set, frozenset)):
        return origin
    return None


def zero(tp, /):
    """
    Answer the zero value of a declared type (None for optional and unknown types).
    """
    tp, _ = _strip_annotated(tp)
    target, optional = _unwrap_optional(tp)
    if optional:
        return None
    origin = typing.get_origin(target) or target
    if origin in _ZEROS:
        return _ZEROS[origin]
    if (concrete := _concrete(origin)) is not None:
        return concrete()
    return None


def convert(text, tp, current=None, /):
    """
    Convert one default string into a value of the declared type.

    Collections accumulate: sequences and sets add the converted item to
    `current`, mappings parse "key:value" and merge it into `current`. Lists
    and dicts are updated in place so the bound object stays the same.

    Raises
    - MalformedDefaultError: when the text cannot be converted.
    """
    tp, _ = _strip_annotated(tp)
    target, _ = _unwrap_optional(tp)
    origin = typing.get_origin(target) or target
    args = typing.get_args(target)

    if target is typing.Any or origin is str:
        return text

    if origin is typing.Literal:
        for value in args:
            if value == text or str(value) == text:
                return value
        raise MalformedDefaultError(
            f"{text!r} is not one of the allowed values",
            hint="expected one of " + ", ".join(map(str, args)),
        )

    # unions take the first member, in declaration order, that converts
    if origin in (typing.Union, types.UnionType):
        for member in args:
            try:
                return convert(text, member, current)
            except MalformedDefaultError:
                continue
        raise MalformedDefaultError(
            f"cannot convert {text!r} to any of " + ", ".join(getattr(member, "__name__", str(member)) for member in args)
        )

    if origin is bool:
        try:
            return _TRUTHS[text.strip().lower()]
        except KeyError:
            raise MalformedDefaultError(f"{text!r} is not a boolean", hint="use true or false") from None

    if origin is bytes:
        return text.encode()

    if isinstance(origin, type) and issubclass(origin, Enum):
        try:
            return origin[text]
        except KeyError:
            pass
        try:
            return origin(text)
        except ValueError:
            raise MalformedDefaultError(
                f"{text!r} is not a member of {origin.__name__}",
                hint="expected one of " + ", ".join(member.name for member in origin),
            ) from None

    concrete = _concrete(origin)

    if concrete is not None and issubclass(concrete, dict):
        key, separator, value = text.partition(":")
        if not separator:
            raise MalformedDefaultError(f"{text!r} is not a key:value pair", hint="separate key and value with ':'")
        key = convert(key, args[0] if args else str)
        value = convert(value, args[1] if len(args) > 1 else str)
        if isinstance(current, dict):
            current[key] = value
            return current
        return concrete({**(current or {}), key: value})

    if concrete is not None:
        item = convert(text, args[0] if args else str)
        if isinstance(current, list):
            current.append(item)
            return current
        return concrete((*(current or ()), item))

    if not callable(origin):
        raise MalformedDefaultError(f"cannot convert {text!r} to {target!r}")
    try:
        return origin(text)
    except (TypeError, ValueError) as error:
        raise MalformedDefaultError(f"cannot convert {text!r} to {getattr(origin, '__name__', origin)}: {error}") from error


__all__ = (
    "Tag",
    "Field",
    "Binding",
    "is_record",
    "fields",
    "zero",
    "convert",
)
