"""
Option model: one bindable field discovered while scanning a record.

An Option describes how a field is named (long name, short name), documented
(description, value name, default mask), defaulted (declared default strings
plus the snapshot taken once they were applied) and bound: it keeps a live
Binding into the caller's record, so assigning through the option writes the
record's attribute directly.

Lifecycle
- created by the group scanner, once per field;
- cleared and re-defaulted by Group.store_defaults();
- mutated afterwards by whatever consumes the tree (argument parsers, ini loaders).
"""
import copy

from .faults import MalformedDefaultError
from .reflection import convert, zero
from .utils import Unset


class Option:
    """
    Named, value-bearing option bound to a record field.

    Public attributes mirror the field's tag keys:
        long_name          ← long
        short_name         ← short (a single character, "" when absent)
        description        ← description
        default            ← default (repeatable, kept in order)
        default_mask       ← default-mask
        required           ← required
        optional_argument  ← optional
        optional_value     ← optional-value (repeatable)
        value_name         ← value-name
        ini_name           ← ini-name

    Read-only
        field          the originating reflection.Field
        value          the live reflection.Binding
        tag            the parsed MultiTag
        default_value  snapshot taken after defaults were applied (Unset until then)
    """

    def __init__(
            self,
            *,
            field,
            value,
            tag,
            long_name="",
            short_name="",
            description="",
            default=(),
            default_mask="",
            required=False,
            optional_argument=False,
            optional_value=(),
            value_name="",
            ini_name="",
    ):
        self.long_name = long_name
        self.short_name = short_name
        self.description = description
        self.default = list(default)
        self.default_mask = default_mask
        self.required = bool(required)
        self.optional_argument = bool(optional_argument)
        self.optional_value = list(optional_value)
        self.value_name = value_name
        self.ini_name = ini_name

        self._field = field
        self._value = value
        self._tag = tag
        self._default_value = Unset

    @property
    def field(self):
        return self._field

    @property
    def value(self):
        return self._value

    @property
    def tag(self):
        return self._tag

    @property
    def default_value(self):
        return self._default_value

    @property
    def is_default(self):
        """
        True while the bound value still equals the stored default snapshot.
        """
        if self._default_value is Unset:
            return False
        return self._value.get() == self._default_value

    def clear(self):
        """
        Reset the bound value to the zero value of the field's declared type.
        """
        self._value.set(zero(self._field.type))

    def set(self, text, /):
        """
        Convert one string and store it; collection fields accumulate.
        """
        try:
            self._value.set(convert(text, self._field.type, self._value.get()))
        except MalformedDefaultError as error:
            raise copy.replace(error, field=self._field.name) from None

    def reset(self):
        """
        Restore the snapshot taken by default materialization (no-op without one).
        """
        if self._default_value is Unset or not self._value.settable:
            return
        self._value.set(copy.deepcopy(self._default_value))

    def _defaulted(self):
        # declared defaults applied to a scratch zero value; the binding is not touched
        value = zero(self._field.type)
        try:
            for default in self.default:
                value = convert(default, self._field.type, value)
        except MalformedDefaultError as error:
            raise copy.replace(error, field=self._field.name) from None
        return value

    def _snapshot(self):
        # deep copy so later in-place mutation of lists/dicts keeps the snapshot intact
        self._default_value = copy.deepcopy(self._value.get())

    def __str__(self):
        if self.short_name and self.long_name:
            return f"-{self.short_name}, --{self.long_name}"
        if self.short_name:
            return f"-{self.short_name}"
        return f"--{self.long_name}"

    def __repr__(self):
        return f"Option({str(self)!r}, field={self._field.name!r}, value={self._value.get()!r})"

    def __rich_repr__(self):
        yield "names", str(self)
        yield "field", self._field.name
        yield "description", self.description, ""
        yield "default", tuple(self.default), ()
        yield "required", self.required, False
        yield "value", self._value.get()


__all__ = (
    "Option",
)
