"""Raw source text access by parser offsets, and non-overlapping text splicing."""

import re
from bisect import bisect_left, insort

# Characters outside the BMP take two UTF-16 code units in parser offsets
_ASTRAL_CHAR = re.compile("[\U00010000-\U0010FFFF]")


class SourceText:
    """Raw source text addressed by the parser's offsets.

    acorn reports offsets in UTF-16 code units. Python strings index by code
    point, so offsets are translated whenever the text contains characters
    outside the Basic Multilingual Plane.
    """

    def __init__(self, text: str):
        self.text = text
        # UTF-16 offsets at which an astral character starts
        self._astral_units = [
            match.start() + count
            for count, match in enumerate(_ASTRAL_CHAR.finditer(text))
        ]

    def __len__(self) -> int:
        return len(self.text)

    def index(self, offset: int) -> int:
        """Translate a parser offset to a string index."""
        if not self._astral_units:
            return offset
        return offset - bisect_left(self._astral_units, offset)

    def slice(self, start: int, end: int) -> str:
        return self.text[self.index(start):self.index(end)]


class Splice:
    """A set of non-overlapping replacements over a piece of text.

    Intervals are given in the coordinates of the enclosing source (``offset``
    is the position of ``text`` within it) and applied all at once.
    """

    def __init__(self, text: str, offset: int = 0):
        self.text = text
        self.offset = offset
        self._edits: list[tuple[int, int, str]] = []

    def __len__(self) -> int:
        return len(self._edits)

    def replace(self, start: int, end: int, replacement: str) -> "Splice":
        """Queue a replacement of ``[start, end)`` with ``replacement``.

        Raises:
            ValueError: If the interval falls outside the text or overlaps a
                previously queued interval.
        """
        start -= self.offset
        end -= self.offset
        if not 0 <= start <= end <= len(self.text):
            raise ValueError(
                f"splice interval [{start + self.offset}, {end + self.offset}) "
                f"is outside the text"
            )

        edit = (start, end, replacement)
        position = bisect_left(self._edits, edit)
        before = self._edits[position - 1] if position > 0 else None
        after = self._edits[position] if position < len(self._edits) else None
        if (before is not None and before[1] > start) or (after is not None and after[0] < end):
            raise ValueError(
                f"splice interval [{start + self.offset}, {end + self.offset}) overlaps another edit"
            )

        insort(self._edits, edit)
        return self

    def apply(self) -> str:
        """Return the text with every queued replacement applied."""
        parts = []
        cursor = 0
        for start, end, replacement in self._edits:
            parts.append(self.text[cursor:start])
            parts.append(replacement)
            cursor = end
        parts.append(self.text[cursor:])
        return "".join(parts)

    def __str__(self) -> str:
        return self.apply()
