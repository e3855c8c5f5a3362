"""
Struct-tag parsing: one raw metadata string per field, many values per key.

Grammar
    tag   := ws* (pair (ws+ pair)*)? ws*
    pair  := key ':' '"' value '"'
    key   := any run of characters other than space, ':' and '"'
    value := characters with backslash escapes (Python string-literal rules)

Keys are case-sensitive and may repeat; repeated keys accumulate their values
in declaration order:

    >>> tag = parse_tag_string('long:"name" default:"a" default:"b"')
    >>> tag.get("long"), tag.get_many("default")
    ('name', ['a', 'b'])
"""
import ast

from .faults import MalformedTagError


class MultiTag:
    """
    Parsed per-field metadata: an ordered multi-map from key to string values.

    get(key) answers the last declared value (or "" when absent), while
    get_many(key) answers every value in declaration order.
    """
    __slots__ = ("_raw", "_values")

    def __init__(self, raw="", values=None, /):
        self._raw = raw
        self._values = {key: list(value) for key, value in (values or {}).items()}

    @property
    def raw(self):
        return self._raw

    def get(self, key, /):
        if values := self._values.get(key):
            return values[-1]
        return ""

    def get_many(self, key, /):
        return list(self._values.get(key, ()))

    def set(self, key, value, /):
        self._values[key] = [value]

    def set_many(self, key, values, /):
        self._values[key] = list(values)

    def __contains__(self, key):
        return key in self._values

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __eq__(self, other):
        if not isinstance(other, MultiTag):
            return NotImplemented
        return self._values == other._values

    __hash__ = None

    def __repr__(self):
        return f"MultiTag({self._raw!r})"

    def __rich_repr__(self):
        for key, values in self._values.items():
            yield key, values[0] if len(values) == 1 else tuple(values)


def _unquote(body, raw):
    try:
        value = ast.literal_eval('"' + body + '"')
    except (SyntaxError, ValueError):
        raise MalformedTagError(
            f"invalid escape sequence in tag value {body!r} (in {raw!r})",
            hint="escape backslashes and quotes with a backslash",
        ) from None
    if not isinstance(value, str):
        raise MalformedTagError(f"tag value {body!r} is not a string (in {raw!r})")
    return value


def parse_tag_string(raw, /):
    """
    Parse a raw struct-tag string into a MultiTag.

    Raises
    - MalformedTagError: when a key is not followed by ':"', or a quoted value
      is never closed, or a value holds an invalid escape.
    """
    if not isinstance(raw, str):
        raise TypeError("parse_tag_string() argument must be a string")

    values = {}
    tag = raw
    while tag:
        tag = tag.lstrip(" ")
        if not tag:
            break

        # Scan to colon to find the key
        index = 0
        while index < len(tag) and tag[index] not in ' :"':
            index += 1

        if index >= len(tag):
            raise MalformedTagError(f"expected ':' after key name, but got end of tag (in {raw!r})")
        if tag[index] != ":":
            raise MalformedTagError(f"expected ':' after key name, but got {tag[index]!r} (in {raw!r})")
        if index + 1 >= len(tag):
            raise MalformedTagError(f"expected '\"' to start tag value at end of tag (in {raw!r})")
        if tag[index + 1] != '"':
            raise MalformedTagError(
                f"expected '\"' to start tag value, but got {tag[index + 1]!r} (in {raw!r})",
                hint='quote every value, e.g. long:"name"',
            )

        key = tag[:index]
        tag = tag[index + 2:]

        # Scan the quoted value, honouring backslash escapes
        index = 0
        while index < len(tag) and tag[index] != '"':
            if tag[index] == "\\":
                index += 1
            index += 1

        if index >= len(tag):
            raise MalformedTagError(f"expected end of tag value '\"' at end of tag (in {raw!r})")

        values.setdefault(key, []).append(_unquote(tag[:index], raw))
        tag = tag[index + 1:]

    return MultiTag(raw, values)


__all__ = (
    "MultiTag",
    "parse_tag_string",
)
