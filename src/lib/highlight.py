"""
Line and character range highlighting

The highlight directive is a comma separated list of segments:

    line[-endLine][:char[-endChar] | :"term"[occ[-occ]] | :/regex/[occ[-occ]]][#id]

    3               whole line 3
    3-5             whole lines 3 to 5
    3:4-9           characters 4..9 (end exclusive) of line 3
    3:"foo"         every occurrence of foo on line 3
    3:"foo"[1]      the second occurrence only
    3:/ba+r/[0-2]   the first two regex matches
    3:4-9#focus     same as 3:4-9, tagged with an id

Line numbers are displayed numbers; character offsets count from the start
of the line's code span, indentation excluded. Search terms are expanded
into character ranges the first time their line renders.

Each character range is wrapped in mark[data-highlighted] by splitting the
code span's inline nodes at both offsets. Marks never nest: existing marks
inside a new range are unwrapped into it.
"""

import re
from typing import Dict, List, Optional

from ..models.block import BlockContext, HighlightSegment
from ..models.directives import DirectiveSpec, DirectiveCategory
from ..models.tree import Element, Node
from .log import LOG
from .transform import Transform, blockCode_get, lineCode_get
from .tree import (
    element_create, node_getText, nodes_split, rangesOf_find,
    rgb_alter, style_append, style_parse, textLength_get,
)


_SEGMENT = re.compile(
    r'(?:(\d+)(?:-(\d+))?'
    r'(?::(\d+)(?:-(\d+))?|(?::"(.+?)"|:/(.+?)/)(?:\[(\d+)(?:-(\d+))?\])?)?'
    r'(?:#([A-Za-z0-9-]+))?),?'
)


def _int_get(text: Optional[str]) -> Optional[int]:
    return int(text) if text is not None else None


def highlightMeta_parse(raw: Optional[str]) -> List[HighlightSegment]:
    """
    Parse the highlight directive into segments

    Segments whose regular expression does not compile are logged and
    dropped; the others are kept.

    Example:
        '2:3-6,4#next' gives two segments: line 2 chars 3..6, and the whole
        of line 4 with dataId 'next'.
    """
    segments: List[HighlightSegment] = []
    if raw is None or not raw.strip():
        return segments

    for match in _SEGMENT.finditer(raw):
        (startLine, endLine, startChar, endChar,
         termStr, termRegexp, startMatch, endMatch, dataId) = match.groups()

        pattern = None
        if termRegexp is not None:
            try:
                pattern = re.compile(termRegexp)
            except re.error as error:
                LOG(f"Highlight '{match.group(0)}': bad regex ({error}); skipping",
                    level=1, severity="WARNING")
                continue

        segments.append(HighlightSegment(
            startLine=int(startLine),
            endLine=_int_get(endLine),
            startChar=_int_get(startChar),
            endChar=_int_get(endChar),
            termStr=termStr,
            termRegexp=pattern,
            startMatch=_int_get(startMatch),
            endMatch=_int_get(endMatch),
            dataId=dataId,
        ))
    return segments


def segments_groupByLine(segments: List[HighlightSegment]) -> Dict[int, List[HighlightSegment]]:
    """
    Index segments by every displayed line they touch

    Segments ending before they start are logged and dropped.
    """
    lines: Dict[int, List[HighlightSegment]] = {}
    for segment in segments:
        last = segment.lastLine_get()
        if last < segment.startLine:
            LOG(f"Highlight lines {segment.startLine}-{last} are reversed; skipping",
                level=1, severity="WARNING")
            continue
        for number in range(segment.startLine, last + 1):
            lines.setdefault(number, []).append(segment)
    return lines


def segments_expand(segments: List[HighlightSegment], text: str) -> List[HighlightSegment]:
    """
    Turn search-term segments into one char-range segment per selected match

    The occurrence window [startMatch, endMatch) defaults to every match; a
    lone startMatch selects that single occurrence. Segments without a term
    are passed through unchanged. The input segments are not modified.
    """
    expanded: List[HighlightSegment] = []
    for segment in segments:
        if not segment.term_has():
            expanded.append(segment)
            continue

        term = segment.termStr if segment.termStr is not None else segment.termRegexp
        ranges = rangesOf_find(text, term)
        start = segment.startMatch if segment.startMatch is not None else 0
        if segment.endMatch is not None:
            end = segment.endMatch
        elif segment.startMatch is not None:
            end = start + 1
        else:
            end = len(ranges)

        if end <= start:
            LOG(f"Highlight occurrences [{start}-{end}] select nothing; skipping",
                level=1, severity="WARNING")
            continue
        for startChar, endChar in ranges[start:end]:
            expanded.append(segment.chars_set(startChar, endChar))
    return expanded


def marks_flatten(nodes: List[Node]) -> List[Node]:
    """Replace top-level marks by their children"""
    flat: List[Node] = []
    for node in nodes:
        if isinstance(node, Element) and node.tagName == 'mark':
            flat.extend(node.children)
        else:
            flat.append(node)
    return flat


def mark_wrap(code: Element, startChar: int, endChar: int, dataId: Optional[str] = None) -> Element:
    """
    Wrap code[startChar:endChar] in a mark

    Expects 0 <= startChar < endChar <= text length of code.

    Returns:
        The new mark element
    """
    left, rest = nodes_split(code.children, startChar)
    middle, right = nodes_split(rest, endChar - startChar)
    mark = element_create('mark', {'data-highlighted': ''}, marks_flatten(middle))
    if dataId is not None:
        mark.properties['data-highlighted-id'] = dataId
    code.children = left + [mark] + right
    return mark


def segment_apply(line: Element, code: Element, segment: HighlightSegment, index: int) -> None:
    """Apply one concrete segment to a numbered line"""
    if segment.startChar is None:
        line.properties['data-highlighted-line'] = ''
        if segment.dataId is not None:
            line.properties['data-highlighted-line-id'] = segment.dataId
        return

    if segment.endChar is not None and segment.endChar <= segment.startChar:
        LOG(f"Line {index}: highlight chars {segment.startChar}-{segment.endChar} "
            "are empty or reversed; skipping", level=1, severity="WARNING")
        return

    length = textLength_get(code)
    if segment.startChar >= length:
        LOG(f"Line {index}: highlight start {segment.startChar} is past the "
            f"end of the line ({length}); skipping", level=1, severity="WARNING")
        return

    endChar = length if segment.endChar is None else min(segment.endChar, length)
    mark_wrap(code, segment.startChar, endChar, segment.dataId)


class HighlightTransform(Transform):
    """Highlights whole lines and character ranges"""

    name = 'highlight'
    hooks = frozenset({'preprocess', 'line', 'pre'})
    requires = {
        'preprocess': ('meta',),
        'line': ('line-numbers',),
    }
    excludesAnnotated = True
    requiresLineShape = True

    def directives(self) -> List[DirectiveSpec]:
        return [
            DirectiveSpec(
                name='highlight',
                category=DirectiveCategory.HIGHLIGHT,
                description='Lines, character ranges or search terms to highlight',
                parser=highlightMeta_parse,
                examples=['highlight=3', 'highlight=2-4,6:0-5', 'highlight=3:"foo"[1]#x'],
            ),
        ]

    def preprocess(self, code: str, context: BlockContext) -> str:
        context.highlights = segments_groupByLine(context.meta.get('highlight') or [])
        return code

    def line(self, line: Element, index: int, context: BlockContext) -> None:
        number = context.numbering.get(index)
        if number is None or number not in context.highlights:
            return

        code = lineCode_get(line)
        resolved = context.resolvedHighlights.get(index)
        if resolved is None:
            resolved = segments_expand(context.highlights[number], node_getText(code))
            context.resolvedHighlights[index] = resolved

        for segment in resolved:
            segment_apply(line, code, segment, index)

    def pre(self, pre: Element, context: BlockContext) -> None:
        styles = []
        for key, value in style_parse(str(pre.properties.get('style', ''))):
            if key == '--code-light-bg':
                styles.append(f"--code-highlighted-light-bg:{rgb_alter(value, lambda c: c * 0.9)};")
            elif key == '--code-dark-bg':
                styles.append(f"--code-highlighted-dark-bg:{rgb_alter(value, lambda c: c * 1.5)};")
        style_append(blockCode_get(pre), ''.join(styles))
