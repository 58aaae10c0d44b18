"""Fixed-width text layout for thermal receipts.

Every helper here produces lines for a monospace printer with a given
number of character columns (32 on 58mm paper, 42 on 80mm paper). The
printer itself is always left-aligned while printing receipt text, so
centering and right-aligned columns are done with spaces.
"""

from enum import Enum
from typing import List


class Alignment(Enum):
    """Text alignment options."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


def justify(text: str, width: int) -> str:
    """Spread words across the full width.

    Extra spaces go to the leftmost gaps first. Single words are padded
    on the right, over-long text is truncated.
    """
    t = (text or "").strip()
    if not t:
        return " " * width
    if len(t) >= width:
        return t[:width]

    words = t.split()
    if len(words) == 1:
        return t.ljust(width)

    gaps = len(words) - 1
    spaces_needed = width - sum(len(w) for w in words)
    base, extra = divmod(spaces_needed, gaps)

    out = []
    for i, word in enumerate(words):
        out.append(word)
        if i < gaps:
            out.append(" " * (base + (1 if i < extra else 0)))
    return "".join(out)


def center_pad(text: str, width: int) -> str:
    """Center text, left padding gets the smaller half."""
    t = (text or "").strip()
    if len(t) >= width:
        return t[:width]
    left = (width - len(t)) // 2
    return " " * left + t + " " * (width - len(t) - left)


def wrap(text: str, width: int) -> List[str]:
    """Greedy word wrap.

    Whitespace runs collapse to single spaces. Words longer than the
    width are split so that no line is ever wider than ``width``. Empty
    input yields a single blank line.
    """
    raw = " ".join(str(text or "").split())
    if not raw:
        return [" " * width]

    lines: List[str] = []
    current = ""
    for word in raw.split(" "):
        if len(word) > width:
            if current:
                lines.append(current)
                current = ""
            while len(word) > width:
                lines.append(word[:width])
                word = word[width:]
            current = word
            continue

        if not current:
            current = word
        elif len(current) + 1 + len(word) <= width:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word

    if current:
        lines.append(current)
    return lines


def wrap_and_center(text: str, width: int) -> List[str]:
    """Wrap, then center each line. Used for header and footer blocks."""
    return [center_pad(line, width) for line in wrap(text, width)]


def rule_line(char: str, width: int) -> str:
    """Section separator, e.g. ``rule_line("=", 32)``."""
    return (char or " ")[0] * width


def two_column(left: str, right: str, width: int) -> str:
    """Left field, spaces, right field ending at column ``width``.

    When both fields together are wider than the paper nothing is
    truncated here; the result is longer than ``width`` and the command
    encoder later cuts it at the paper width, losing the right field's
    tail. Callers that need both fields intact must shorten the left
    field themselves.
    """
    spaces = max(0, width - len(left) - len(right))
    return left + " " * spaces + right
