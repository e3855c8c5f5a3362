"""
Tagflags groups: scan annotated records into a tree of options.

What this module provides
- Group: a node bound to one record instance, holding the Options discovered
  in it and the child Groups built from nested records that declare a group.
- Scanning: Group.scan() walks the record's fields in declaration order,
  reads every field's struct tag and turns tagged fields into Options.
- Tree operations: name-priority option lookup, dotted-path group lookup,
  ordered traversal, recursive finders.
- Default materialization: Group.store_defaults() clears bound values,
  re-applies declared defaults and snapshots the result.

Scanning rules
- private fields (leading underscore) are never scanned;
- fields tagged no-flag:"..." are skipped;
- a field whose declared type is a record (or `Record | None` currently set)
  is descended into. Before descending, the scan handler may claim it: the
  default handler turns fields tagged group:"name" into child groups;
- other fields become options when they declare long:"..." or short:"...".

Quick example
    from dataclasses import dataclass, field
    from typing import Annotated

    from tagflags import Group, Tag

    @dataclass
    class Sub:
        level: Annotated[int, Tag('long:"level" default:"3"')] = 0

    @dataclass
    class Options:
        verbose: Annotated[bool, Tag('short:"v" description:"enable verbose"')] = False
        name: Annotated[str, Tag('long:"name" default:"anon"')] = ""
        sub: Annotated[Sub, Tag('group:"sub" description:"sub options"')] = field(default_factory=Sub)

    options = Options()
    root = Group("Application Options", "", options)
    root.scan()
    root.each_group(Group.store_defaults, True)
    assert options.name == "anon" and root.group_by_name("sub").options[0].value.get() == 3

Tiers of failure
- InvalidTargetError (a TypeError): the group's data is not a record instance.
- ShortNameTooLongError / MalformedTagError / MalformedDefaultError: bad
  metadata; raised from the innermost scan and propagated unchanged.
"""
import copy
import logging

from .faults import InvalidTargetError, ScanException, ShortNameTooLongError
from .multitag import parse_tag_string
from .options import Option
from .reflection import Binding, fields, is_record
from .utils import Unset, mirror

LOGGER = logging.getLogger(__name__)


def _parse_field_tag(field):
    try:
        return parse_tag_string(field.tag)
    except ScanException as error:
        raise copy.replace(error, field=field.name) from None


class Group:
    """
    Node of the option tree, bound to one record instance.

    Attributes
    - short_description / long_description: descriptive text. The short
      description doubles as the group's name for group_by_name() and find().
    - data: the record instance this group was scanned from (borrowed).
    - parent: owning Group, None for the root.
    - options: discovered Options in declaration order (read-only tuple).
    - groups: child Groups in declaration order (read-only tuple).
    """

    options = mirror("options")
    groups = mirror("groups")

    def __init__(self, short_description, long_description, data, /, *, parent=None):
        self.short_description = short_description
        self.long_description = long_description
        self._data = data
        self._parent = parent
        self._options = []
        self._groups = []

    @property
    def data(self):
        return self._data

    @property
    def parent(self):
        return self._parent

    def add_group(self, short_description, long_description, data, /):
        """
        Build a child group from a record instance, scan it and attach it.

        The child is attached only once its scan succeeded; scan failures
        propagate to the caller.
        """
        group = Group(short_description, long_description, data, parent=self)
        group.scan()
        self._groups.append(group)
        LOGGER.debug("added group %r to %r", short_description, self.short_description)
        return group

    def scan(self):
        """
        Scan the bound record, turning nested group declarations into child groups.
        """
        self._scan_type(self._scan_sub_group_handler)

    def _scan_type(self, handler):
        if isinstance(self._data, type) or not is_record(type(self._data)):
            raise InvalidTargetError(self._data)
        self._scan_struct(self._data, None, handler)

    def _scan_struct(self, record, origin, handler):
        # the handler gets the first word on every nested record
        if origin is not None and handler(record, origin):
            return

        for field in fields(type(record)):
            if not field.exported:
                continue

            tag = _parse_field_tag(field)

            if tag.get("no-flag"):
                continue

            # Dive into nested records; unset optional records fall through
            if is_record(field.target):
                nested = getattr(record, field.name, None)
                if nested is not None:
                    self._scan_struct(nested, field, handler)
                    continue

            long_name = tag.get("long")
            short_name = tag.get("short")

            if not long_name and not short_name:
                continue

            if len(short_name) > 1:
                raise ShortNameTooLongError(
                    f"short names can only be 1 character long, not {short_name!r}",
                    field=field.name,
                    hint="move the name to long:\"...\" or keep a single character",
                )

            option = Option(
                field=field,
                value=Binding(record, field),
                tag=tag,
                long_name=long_name,
                short_name=short_name,
                description=tag.get("description"),
                default=tag.get_many("default"),
                default_mask=tag.get("default-mask"),
                required=tag.get("required") != "",
                optional_argument=tag.get("optional") != "",
                optional_value=tag.get_many("optional-value"),
                value_name=tag.get("value-name"),
                ini_name=tag.get("ini-name"),
            )
            self._options.append(option)
            LOGGER.debug("discovered option %s on %s.%s", option, type(record).__name__, field.name)

    def _scan_sub_group_handler(self, record, field):
        tag = _parse_field_tag(field)

        if not (subgroup := tag.get("group")):
            return False

        self.add_group(subgroup, tag.get("description"), record)
        return True

    def option_by_name(self, name, namematch=None, /):
        """
        Find one of this group's options by name.

        Priority, highest first
        4. namematch(option, name) is true
        3. the field name equals name
        2. the long name equals name
        1. the short name equals name
        Ties keep the first option in declaration order. None when nothing matches.
        """
        priority = 0
        result = None

        for option in self._options:
            if namematch is not None and namematch(option, name) and priority < 4:
                result, priority = option, 4

            if name == option.field.name and priority < 3:
                result, priority = option, 3

            if name == option.long_name and priority < 2:
                result, priority = option, 2

            if option.short_name and name == option.short_name and priority < 1:
                result, priority = option, 1

        return result

    def store_defaults(self):
        """
        Apply declared defaults to this group's options and snapshot the results.

        Options bound to a non-settable record are left untouched. Every
        default is converted before anything is written, so a malformed
        default leaves the record as it was.
        """
        pending = []
        for option in self._options:
            if not option.value.settable:
                LOGGER.debug("not storing defaults of %s: %s is not settable", option, option.field.name)
                continue

            pending.append((option, option._defaulted() if option.default else Unset))

        for option, value in pending:
            if value is not Unset:
                option.value.set(value)

            option._snapshot()

    def each_group(self, visit, recurse, /):
        """
        Visit this group, then its children (their whole subtrees when recurse is true).
        """
        visit(self)

        for group in self._groups:
            if recurse:
                group.each_group(visit, True)
            else:
                visit(group)

    def group_by_name(self, name, /):
        """
        Resolve a dotted, case-insensitive path of short descriptions.

        An empty path answers this group itself; no match answers None.
        """
        name = name.lower()

        if not name:
            return self

        for group in self._groups:
            lname = group.short_description.lower()
            prefix = lname + "."

            if name.startswith(prefix):
                if (found := group.group_by_name(name[len(prefix):])) is not None:
                    return found
            elif name == lname:
                return group

        return None

    def find(self, short_description, /):
        """
        Find the first group in this subtree (this group included) with the given short description.
        """
        groups = []
        self.each_group(groups.append, True)
        return next((group for group in groups if group.short_description == short_description), None)

    def _find_option(self, predicate):
        groups = []
        self.each_group(groups.append, True)
        for group in groups:
            for option in group._options:
                if predicate(option):
                    return option
        return None

    def find_option_by_long_name(self, long_name, /):
        return self._find_option(lambda option: option.long_name == long_name)

    def find_option_by_short_name(self, short_name, /):
        return self._find_option(lambda option: option.short_name and option.short_name == short_name)

    def __repr__(self):
        return f"Group({self.short_description!r}, options={len(self._options)}, groups={len(self._groups)})"

    def __rich_repr__(self):
        yield "short_description", self.short_description
        yield "long_description", self.long_description, ""
        yield "options", tuple(self._options)
        yield "groups", tuple(self._groups)


__all__ = (
    "Group",
)
