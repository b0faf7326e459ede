"""
Indenting text sink with a maximum output length.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import io
from typing import TextIO

# Local ----------------------------------------------------------------------------------------------------------------
from .formatters import fmt_type
from .settings import DEFAULT_INDENT_SIZE, DEFAULT_MAX_LENGTH

MAX_LENGTH_EXCEEDED = ("...\nThe dump exceeded the maximum length of {max_length} characters. "
                       "Either increase the value of the setting or examine the dump as-is.")


# Classes --------------------------------------------------------------------------------------------------------------

class DumpWriter:
    """
    Text sink that indents every line after a newline and stops at a maximum length.

    Indentation is inserted lazily, before the first character of a line, so
    empty lines carry no trailing blanks. Characters count against
    ``max_length`` before indentation is added; the first write that crosses
    the limit is cut, followed once by a notice, and later writes are dropped.

    Args:
        stream: Target text stream; a new ``io.StringIO`` when None.
        indent_size: Spaces per indent level.
        max_length: Maximum number of characters accepted; non-positive selects the default.

    Examples:
        >>> w = DumpWriter()
        >>> w.write("a").indent().newline().write("b").getvalue()
        'a\\n  b'
    """

    def __init__(self,
                 stream: TextIO | None = None,
                 indent_size: int = DEFAULT_INDENT_SIZE,
                 max_length: int = DEFAULT_MAX_LENGTH,
                 ) -> None:
        if stream is not None and not callable(getattr(stream, "write", None)):
            raise TypeError(f"a text stream with write() expected, but got {fmt_type(stream)}")
        self.stream = stream if stream is not None else io.StringIO()
        self.indent_size = max(0, indent_size)
        self.max_length = max_length if max_length > 0 else DEFAULT_MAX_LENGTH
        self.indent_level = 0
        self._length = 0
        self._must_indent = False
        self._exceeded = False

    @property
    def length(self) -> int:
        """Characters accepted since the last reset, indentation excluded."""
        return self._length

    @property
    def exceeded(self) -> bool:
        return self._exceeded

    def write(self, text: str) -> "DumpWriter":
        """Write text, indenting each line that follows a newline."""
        if not text or self._exceeded:
            return self

        remaining = self.max_length - self._length
        cut = len(text) > remaining
        if cut:
            text = text[:remaining]
        self._length += len(text)

        lines = text.split("\n")
        for i, line in enumerate(lines):
            if i:
                self.stream.write("\n")
                self._must_indent = True
            if line:
                if self._must_indent:
                    self.stream.write(" " * (self.indent_level * self.indent_size))
                    self._must_indent = False
                self.stream.write(line)

        if cut:
            self._exceeded = True
            self.stream.write(MAX_LENGTH_EXCEEDED.format(max_length=self.max_length))
        return self

    def newline(self) -> "DumpWriter":
        return self.write("\n")

    def indent(self) -> "DumpWriter":
        self.indent_level += 1
        return self

    def unindent(self) -> "DumpWriter":
        self.indent_level = max(0, self.indent_level - 1)
        return self

    def reset(self, indent_level: int = 0) -> "DumpWriter":
        """Prepare for a new dump: restore the indent level and the length budget."""
        self.indent_level = max(0, indent_level)
        self._length = 0
        self._must_indent = False
        self._exceeded = False
        return self

    def getvalue(self) -> str:
        """Text written so far, when the stream supports ``getvalue()``."""
        getvalue = getattr(self.stream, "getvalue", None)
        if getvalue is None:
            raise TypeError(f"{fmt_type(self.stream)} does not keep the written text")
        return getvalue()
