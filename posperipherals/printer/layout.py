"""Fixed-width text layout for narrow receipt paper."""

from __future__ import annotations

from typing import List


def wrap_text(text: str, width: int) -> List[str]:
    """Break ``text`` into lines of at most ``width`` characters.

    Explicit newlines are kept. Long lines break at spaces; a single word
    longer than ``width`` goes on a line of its own, unbroken.
    """
    lines: List[str] = []
    for line in text.split('\n'):
        if len(line) <= width:
            lines.append(line)
            continue

        current = ""
        for word in line.split():
            if not current:
                current = word
            elif len(current) + 1 + len(word) <= width:
                current += ' ' + word
            else:
                lines.append(current)
                current = word
        if current:
            lines.append(current)
    return lines


def center_text(text: str, width: int) -> str:
    """Pad with ``(width - len) // 2`` leading spaces. Never truncates."""
    padding = max(0, (width - len(text)) // 2)
    return ' ' * padding + text


def right_text(text: str, width: int) -> str:
    """Pad so the text ends at column ``width``. Never truncates."""
    return ' ' * max(0, width - len(text)) + text


def separator(char: str = '=', width: int = 48) -> str:
    return char * width


def columns(label: str, value: str, width: int) -> str:
    """Label flush left and value flush right, at least one space apart."""
    padding = max(1, width - len(label) - len(value))
    return label + ' ' * padding + value
