"""
Tagflags faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every recoverable issue
  found while reading declarative field metadata.
- ScanException: base type carrying message + options that knows how to render
  itself (rich) in a friendly, lowercased, and actionable way.
- InvalidTargetError: programmer-error tier. Raised when the API is handed
  something that is not a record instance. It is a TypeError and deliberately
  NOT a ScanException, so `except ScanException` never hides API misuse.

Tiers
- programmer error  → InvalidTargetError (do not catch, fix the call site)
- declarative error → ShortNameTooLongError, MalformedTagError, MalformedDefaultError
- propagated        → nested scans re-raise the above unchanged

Presentation
- The host application may define __styles__ (rich styles) and __codes__
  (FaultCode → label) on its __main__ module to customize rendering.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes used across the scanner (stable identifiers).

    grouping
    - field naming (2110x)
      • SHORT_NAME_TOO_LONG
    - metadata syntax (2111x)
      • MALFORMED_TAG
    - default values (2112x)
      • MALFORMED_DEFAULT
    """
    # --- field naming errors (211xx) ---
    SHORT_NAME_TOO_LONG         = 21101

    # --- metadata syntax errors (211xx) ---
    MALFORMED_TAG               = 21111

    # --- default value errors (211xx) ---
    MALFORMED_DEFAULT           = 21121

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ScanException(Exception):
    """
    base class of every recoverable fault raised while scanning or
    materializing defaults.

    options
    - code: FaultCode (defaults to the class-level __code__)
    - title: short title used in the rendered header
    - hint: one actionable sentence
    - field: name of the offending field, when known
    - colorful / fancy: rendering switches (default True / False)
    """
    __code__ = Unset
    __title__ = "scan error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType({
            "code": type(self).__code__,
            "title": type(self).__title__,
            "hint": "",
            "colorful": True,
            "fancy": False,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def field(self):
        return self.options.get("field")

    def __str__(self):
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "field": "bold #E6E6F0",  # near-white field name

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if self.options["colorful"] else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        code = self.code.normalize() if isinstance(self.code, FaultCode) else "?"

        header = Text.assemble(
            "[ ",
            text(code, styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            *((" @ ", text(self.field, styler("field"))) if self.field else ()),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.options["hint"], styler("hint")))

        if self.options["fancy"]:
            return Panel(Group(message, hint), title=header, title_align="left")

        return Group(header, message, hint)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ShortNameTooLongError(ScanException):
    __code__ = FaultCode.SHORT_NAME_TOO_LONG
    __title__ = "short name too long"


class MalformedTagError(ScanException):
    __code__ = FaultCode.MALFORMED_TAG
    __title__ = "malformed tag"


class MalformedDefaultError(ScanException):
    __code__ = FaultCode.MALFORMED_DEFAULT
    __title__ = "malformed default"


class InvalidTargetError(TypeError):
    """
    the object handed to a group is not an instance of a record type.

    this signals misuse of the API rather than malformed user metadata.
    """

    def __init__(self, target, /):
        self.target = target
        super().__init__(
            f"provided data is not a record instance (got {type(target).__name__!r}); "
            f"pass an instance of a class with annotated fields"
        )


__all__ = (
    "FaultCode",
    "ScanException",
    "ShortNameTooLongError",
    "MalformedTagError",
    "MalformedDefaultError",
    "InvalidTargetError",
)
