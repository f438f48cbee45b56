"""
Deterministic text layout helpers: greedy word wrap and truncation
"""

from typing import Callable, List


ELLIPSIS = '...'


def wrap_text(text: str,
              max_width: float,
              measure: Callable[[str], float],
              max_lines: int = 2,
              ellipsis: str = ELLIPSIS) -> List[str]:
    """
    Greedy word wrap into at most max_lines lines, none wider than max_width.

    Line breaks only fall between words. When words are left over after
    the last line, trailing words of that line are dropped until it fits
    with an ellipsis appended. A single word wider than max_width is cut
    with an ellipsis and ends the text.
    """
    words = text.split()
    if not words or max_lines <= 0:
        return []

    lines: List[str] = []
    current = words[0]
    overflow = False
    for word in words[1:]:
        candidate = f"{current} {word}"
        if measure(candidate) <= max_width:
            current = candidate
            continue
        if len(lines) + 1 == max_lines or measure(current) > max_width:
            overflow = True
            break
        lines.append(current)
        current = word

    lines.append(fit_with_ellipsis(current, max_width, measure, ellipsis, force=overflow))
    return lines


def fit_with_ellipsis(line: str,
                      max_width: float,
                      measure: Callable[[str], float],
                      ellipsis: str = ELLIPSIS,
                      force: bool = False) -> str:
    """
    Drop trailing words until line plus ellipsis fits max_width.

    Without force, a line that already fits is returned unchanged. When
    the first word alone is still too wide, characters are cut from its
    end instead.
    """
    if not force and measure(line) <= max_width:
        return line
    words = line.split()
    while len(words) > 1 and measure(' '.join(words) + ellipsis) > max_width:
        words.pop()
    kept = ' '.join(words)
    while kept and measure(kept + ellipsis) > max_width:
        kept = kept[:-1].rstrip()
    return kept + ellipsis


def truncate_chars(text: str, limit: int = 50, ellipsis: str = ELLIPSIS) -> str:
    """Cut text to limit characters, ellipsis included."""
    if len(text) <= limit:
        return text
    return text[:max(0, limit - len(ellipsis))] + ellipsis
