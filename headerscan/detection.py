"""
Detects whether a file already starts with the rendered header, and repairs it when not.

Comparison is line based: line endings are normalized and trailing whitespace is
trimmed on both sides. The header starts on the first line, or on the second line
when the first one is a preamble that has to stay first (a shebang, or an XML
declaration for XML-style files).
"""
from __future__ import annotations
from typing import List, Mapping, Optional, Pattern, Sequence, Tuple
import re

from headerscan.results import Action
from headerscan.styles import CommentStyle, SHEBANG

BOM = '\ufeff'
YEAR_SPAN = r'\d{4}(?:\s*[-,]\s*\d{4})*'
DEFAULT_KEYWORDS = ("copyright",)
LINE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+")


def _normalized_lines(text: str) -> List[str]:
    text = text.replace('\r\n', '\n').replace('\r', '\n')
    return [line.rstrip() for line in text.split('\n')]


def year_values(properties: Mapping[str, str]) -> Tuple[str, ...]:
    """
    Returns property values that hold a year (e.g. ``inceptionYear``). Lines rendered
    from them accept any year or year range, so a header written in a later year
    still counts as compliant.
    """
    return tuple(sorted({
        value for name, value in properties.items()
        if name.lower().endswith('year') and re.fullmatch(r'\d{4}', value)
    }))


def _line_matcher(expected: str, years: Sequence[str]) -> Pattern[str] | None:
    if not any(year in expected for year in years):
        return None
    pattern = re.escape(expected)
    for year in years:
        pattern = re.sub(rf'(?<!\d){re.escape(year)}(?!\d)', lambda _: YEAR_SPAN, pattern)
    return re.compile(pattern)


def _lines_match(actual: str, expected: str, years: Sequence[str]) -> bool:
    if actual == expected:
        return True
    matcher = _line_matcher(expected, years)
    return matcher is not None and matcher.fullmatch(actual) is not None


def _preamble_length(lines: Sequence[str], preamble: Optional[Pattern[str]]) -> int:
    if preamble is not None and lines and preamble.match(lines[0]):
        return 1
    return 0


def is_compliant(file_content: str, rendered_header: str,
                 preamble: Optional[Pattern[str]] = SHEBANG,
                 years: Sequence[str] = ()) -> bool:
    """
    Returns True if ``file_content`` starts with ``rendered_header``.

    Never raises for short or unrelated content; it is simply not compliant.
    """
    if file_content.startswith(BOM):
        file_content = file_content[len(BOM):]
    expected = _normalized_lines(rendered_header)
    while expected and not expected[-1]:
        expected.pop()
    if not expected:
        return True

    actual = _normalized_lines(file_content)
    start = _preamble_length(actual, preamble)
    actual = actual[start:start + len(expected)]
    if len(actual) < len(expected):
        return False
    return all(_lines_match(a, e, years) for a, e in zip(actual, expected))


def _newline_of(content: str) -> str:
    crlf = content.count('\r\n')
    lf = content.count('\n') - crlf
    cr = content.count('\r') - crlf
    _, _, result = max((lf, 3, '\n'), (crlf, 2, '\r\n'), (cr, 1, '\r'))
    return result


def _is_blank(line: str) -> bool:
    return not line.strip()


def find_comment_block(lines: Sequence[str], start: int,
                       style: CommentStyle) -> Optional[Tuple[int, int]]:
    """
    Locates the comment block that begins at ``lines[start]``.

    Returns ``(line, column)`` of its last line and the column just past the block
    (past the closing delimiter for block styles), or None when no complete comment
    block begins there.
    """
    if start >= len(lines) or not style.starts_comment(lines[start]):
        return None
    if style.is_block:
        first = lines[start]
        opened = first.index(style.first_line.strip()) + len(style.first_line.strip())
        column = style.comment_end(first, opened)
        if column >= 0:
            return start, column
        for end in range(start + 1, len(lines)):
            column = style.comment_end(lines[end])
            if column >= 0:
                return end, column
        return None
    end = start
    while end + 1 < len(lines) and style.starts_comment(lines[end + 1]):
        end += 1
    return end, len(lines[end])


def apply_header(content: str, rendered_header: str, style: CommentStyle,
                 keywords: Sequence[str] = DEFAULT_KEYWORDS,
                 years: Sequence[str] = ()) -> Tuple[str, Action]:
    """
    Returns ``content`` with the header in place and the action that was needed.

    A leading comment block mentioning one of ``keywords`` is taken to be an outdated
    header and replaced; otherwise the header is inserted. The preamble line, the BOM
    and the file's line ending style are preserved, and one blank line separates the
    header from the rest of the file.
    """
    if is_compliant(content, rendered_header, style.preamble, years):
        return content, Action.NONE

    bom = BOM if content.startswith(BOM) else ''
    body = content[len(bom):]
    nl = _newline_of(body)
    lines = LINE.findall(body)
    stripped = [line.rstrip('\r\n') for line in lines]

    head: List[str] = []
    pos = _preamble_length(stripped, style.preamble)
    if pos:
        head.append(stripped[0] + nl)

    while pos < len(lines) and _is_blank(stripped[pos]):
        pos += 1

    action = Action.INSERTED
    block = find_comment_block(stripped, pos, style)
    if block is not None:
        last, column = block
        text = '\n'.join(stripped[pos:last] + [stripped[last][:column]]).lower()
        if any(keyword.lower() in text for keyword in keywords):
            action = Action.REPLACED
            trailing = stripped[last][column:].lstrip()
            if trailing:
                # Code sharing the line with the closing delimiter stays.
                lines[last] = trailing + lines[last][len(stripped[last]):]
                stripped[last] = trailing
                pos = last
            else:
                pos = last + 1
            while pos < len(lines) and _is_blank(stripped[pos]):
                pos += 1

    header_lines = _normalized_lines(rendered_header)
    while header_lines and not header_lines[-1]:
        header_lines.pop()
    head.extend(line + nl for line in header_lines)

    rest = lines[pos:]
    if rest:
        head.append(nl)
    return bom + ''.join(head) + ''.join(rest), action
