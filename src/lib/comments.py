"""
Line annotation comments

Scans the code body for trailing [!code ...] comments, strips them before
tokenisation and hands each one to the first annotation kind that claims it:

    diff        ++ / --                         added or removed line
    message     annotation / log / warning / error   callout replacing the line
    skip-to     jump N (or skipto N)            page break, numbering resumes at N
    skip-line   skipline                        line kept but left unnumbered

A claimed annotation is not offered to later kinds. Annotations nobody
claims are logged and otherwise ignored.
"""

from typing import Dict, List, Optional, Tuple

from ..config import appsettings
from ..models.block import BlockContext, LineAnnotation
from ..models.tree import Element, Text
from .log import LOG
from .transform import Transform
from .tree import element_create, icon_create


def comments_scan(code: str) -> Tuple[str, Dict[int, LineAnnotation]]:
    """
    Find annotation comments and strip them from the code

    Matching is line-local and ignores trailing whitespace. Each matched
    line is cut at the comment start, dropping the blanks left before it.

    Args:
        code: Code body after fenced meta removal

    Returns:
        (stripped code, zero-based line index -> LineAnnotation)

    Example:
        >>> code, notes = comments_scan('a = 1  # [!code ++]\\nb = 2')
        >>> code
        'a = 1\\nb = 2'
        >>> notes[0].keyword
        '++'
    """
    regex = appsettings.commentRegex_make()
    annotations: Dict[int, LineAnnotation] = {}
    lines = code.split('\n')
    for i, line in enumerate(lines):
        match = regex.search(line.rstrip())
        if not match:
            continue
        annotations[i] = LineAnnotation(
            keyword=match.group(1).lower(),
            message=match.group(2),
            commentOffset=match.start(),
        )
        lines[i] = line[:match.start()].rstrip()
    return '\n'.join(lines), annotations


class AnnotationKind:
    """One kind of line annotation: which keywords it claims and how it renders"""

    name: str = ''

    def claim(self, index: int, annotation: LineAnnotation, context: BlockContext) -> bool:
        """Record the annotation for a one-based line index if this kind owns it"""
        raise NotImplementedError

    def line(self, line: Element, index: int, context: BlockContext) -> None:
        pass


class DiffAnnotations(AnnotationKind):
    """Marks lines added (++) or removed (--) in a diff"""

    name = 'diff'
    keywords = {'++': 'add', '--': 'remove'}

    def claim(self, index, annotation, context):
        if annotation.keyword not in self.keywords:
            return False
        context.diffs[index] = annotation
        return True

    def line(self, line, index, context):
        annotation = context.diffs.get(index)
        if annotation is None:
            return
        line.classes_add('diff', self.keywords[annotation.keyword])
        line.properties['data-line-diff'] = ''


# 32x32 path definitions for the message icons
MESSAGE_ICONS: Dict[str, List[str]] = {
    'annotation': [
        'M11 24h10v2H11zm2 4h6v2h-6zm3-26A10 10 0 0 0 6 12a9.19 9.19 0 0 0 3.46 7.62c1 '
        '.93 1.54 1.46 1.54 2.38h2c0-1.84-1.11-2.87-2.19-3.86A7.2 7.2 0 0 1 8 12a8 8 0 0 1 '
        '16 0a7.2 7.2 0 0 1-2.82 6.14c-1.07 1-2.18 2-2.18 3.86h2c0-.92.53-1.45 1.54-2.39A9.18 '
        '9.18 0 0 0 26 12A10 10 0 0 0 16 2',
    ],
    'log': [
        'M17 22v-8h-4v2h2v6h-3v2h8v-2zM16 8a1.5 1.5 0 1 0 1.5 1.5A1.5 1.5 0 0 0 16 8',
        'M26 28H6a2.002 2.002 0 0 1-2-2V6a2.002 2.002 0 0 1 2-2h20a2.002 2.002 0 0 1 2 '
        '2v20a2.002 2.002 0 0 1-2 2M6 6v20h20V6Z',
    ],
    'warning': [
        'M16 23a1.5 1.5 0 1 0 1.5 1.5A1.5 1.5 0 0 0 16 23m-1-11h2v9h-2z',
        'M29 30H3a1 1 0 0 1-.887-1.461l13-25a1 1 0 0 1 1.774 0l13 25A1 1 0 0 1 29 30M4.65 '
        '28h22.7l.001-.003L16.002 6.17h-.004L4.648 27.997Z',
    ],
    'error': [
        'M15 8h2v11h-2zm1 14a1.5 1.5 0 1 0 1.5 1.5A1.5 1.5 0 0 0 16 22',
        'M16 2a14 14 0 1 0 14 14A14 14 0 0 0 16 2m0 26a12 12 0 1 1 12-12a12 12 0 0 1-12 12',
    ],
}


class MessageAnnotations(AnnotationKind):
    """Replaces a line with an icon and message callout"""

    name = 'message'

    def claim(self, index, annotation, context):
        if annotation.keyword not in MESSAGE_ICONS:
            return False
        context.messages[index] = annotation
        return True

    def line(self, line, index, context):
        annotation = context.messages.get(index)
        if annotation is None:
            return
        callout = element_create(
            'span',
            {'data-line-message-type': annotation.keyword},
            [icon_create(MESSAGE_ICONS[annotation.keyword]), Text(annotation.message)],
        )
        line.children = [callout]
        line.properties['data-line-message'] = ''


def jumpTarget_parse(keyword: str) -> Optional[int]:
    """Parse 'jump N' or 'skipto N' into N"""
    parts = keyword.split()
    if len(parts) != 2 or parts[0] not in ('jump', 'skipto'):
        return None
    try:
        return int(parts[1])
    except ValueError:
        return None


class SkipToAnnotations(AnnotationKind):
    """Replaces a line with a page break; numbering resumes at the target"""

    name = 'skip-to'

    def claim(self, index, annotation, context):
        target = jumpTarget_parse(annotation.keyword)
        if target is None:
            return False
        context.jumps[index] = target
        return True

    def line(self, line, index, context):
        target = context.jumps.get(index)
        if target is None:
            return
        gap = element_create('div', {'data-line-page-break-gap': ''}, [
            element_create('div', {'data-line-page-break-top': ''}),
            element_create('span', {'data-line-page-break-text': ''},
                           [Text(f"skip to line {target}")]),
            element_create('div', {'data-line-page-break-bottom': ''}),
        ])
        line.children = [gap]
        line.properties['data-line-page-break'] = ''


class SkipLineAnnotations(AnnotationKind):
    """Keeps a line but leaves it out of the numbering"""

    name = 'skip-line'

    def claim(self, index, annotation, context):
        if annotation.keyword != 'skipline':
            return False
        context.skiplines.add(index)
        return True

    def line(self, line, index, context):
        if index in context.skiplines:
            line.properties['data-line-skip-number'] = ''


class CommentsTransform(Transform):
    """
    Strips annotation comments and renders the annotated lines

    Preprocess fills context.annotations and the per-kind maps; the line
    hook runs after numbering so replaced lines still carry data-line.
    """

    name = 'comments'
    hooks = frozenset({'preprocess', 'line'})
    requires = {
        'preprocess': ('meta',),
        'line': ('line-numbers',),
    }

    def __init__(self, kinds: Optional[List[AnnotationKind]] = None) -> None:
        self.kinds: List[AnnotationKind] = kinds if kinds is not None else [
            DiffAnnotations(),
            MessageAnnotations(),
            SkipToAnnotations(),
            SkipLineAnnotations(),
        ]

    def preprocess(self, code: str, context: BlockContext) -> str:
        code, context.annotations = comments_scan(code)
        for i, annotation in sorted(context.annotations.items()):
            index = i + 1
            claimed = next(
                (kind for kind in self.kinds if kind.claim(index, annotation, context)),
                None,
            )
            if claimed is None:
                LOG(f"Line {index}: unrecognized annotation '{annotation.keyword}'",
                    level=1, severity="WARNING")
            else:
                LOG(f"Line {index}: {claimed.name} annotation "
                    f"'{annotation.keyword}'", level=3)
        return code

    def line(self, line: Element, index: int, context: BlockContext) -> None:
        for kind in self.kinds:
            kind.line(line, index, context)
