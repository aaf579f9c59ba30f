"""
Figure and caption

Wraps the finished block in a figure with a caption bar showing the title
and the language. The caption colours are derived from the block's own
theme colours. A directory-style title can fade its leading path segments:
with dir-level-fade=1, 'a/b/c/file.ts' renders 'a/b' de-emphasized and
'/c/file.ts' normally.
"""

from typing import Callable, Dict, List, Optional, Tuple

from ..models.block import BlockContext
from ..models.directives import DirectiveSpec, DirectiveCategory
from ..models.tree import Element, Root, Text
from .directives import classesMeta_parse, intMeta_parse, quotedMeta_parse
from .log import LOG
from .transform import Transform
from .tree import element_create, rgb_alter, style_parse


# Block colour variable -> (caption variable, channel transform)
CAPTION_PALETTE: Dict[str, Tuple[str, Callable[[int], float]]] = {
    '--code-light': ('--code-caption-light', lambda c: c * 4),
    '--code-light-bg': ('--code-caption-light-bg', lambda c: c * 0.9),
    '--code-dark': ('--code-caption-dark', lambda c: c * 0.8),
    '--code-dark-bg': ('--code-caption-dark-bg', lambda c: c * 1.5),
}


def captionStyle_make(preStyle: str) -> str:
    """Derive the caption colour variables from a block's style"""
    styles = []
    for key, value in style_parse(preStyle):
        if key in CAPTION_PALETTE:
            captionKey, func = CAPTION_PALETTE[key]
            styles.append(f"{captionKey}:{rgb_alter(value, func)};")
    return ' '.join(styles)


def fadeLevel_check(title: Optional[str], level: Optional[int]) -> Optional[int]:
    """
    Validate a fade level against the title's path segments

    Returns:
        The level if 0 <= level <= segments - 1, else None (out-of-range
        levels are logged)
    """
    if title is None or level is None:
        return None
    segments = title.split('/')
    if 0 <= level < len(segments):
        return level
    LOG(f"Directory level {level} is out of range for '{title}' "
        f"(0-{len(segments) - 1}); fade disabled", level=1, severity="ERROR")
    return None


def titleSpans_make(title: str, level: Optional[int]) -> List[Element]:
    """
    Build the title runs for the caption

    With a fade level, the leading segments up to and including the level
    form a faded prefix and any rest follows as the main run. Without one,
    the first segment is emphasized as the root and any rest follows as the
    main run. Titles starting with '/' are rendered as plain text.
    """
    segments = title.split('/')
    if level is not None:
        spans = [element_create('span', {'data-code-title-prefix': 'fade'},
                                [Text('/'.join(segments[:level + 1]))])]
        if level < len(segments) - 1:
            spans.append(element_create('span', {'data-code-title-main': 'fade'},
                                        [Text('/' + '/'.join(segments[level + 1:]))]))
        return spans

    if title.startswith('/'):
        return []
    spans = [element_create('span', {'data-code-title-prefix': 'root'},
                            [Text(segments[0])])]
    if len(segments) > 1:
        spans.append(element_create('span', {'data-code-title-main': ''},
                                    [Text('/' + '/'.join(segments[1:]))]))
    return spans


class FigureTransform(Transform):
    """Wraps the block in a captioned figure"""

    name = 'figure'
    hooks = frozenset({'pre', 'root'})

    def directives(self) -> List[DirectiveSpec]:
        def title_parse(raw: Optional[str]) -> Optional[str]:
            return quotedMeta_parse(raw)

        def fade_parse(raw: Optional[str]) -> Optional[int]:
            return intMeta_parse(raw, default=None, name='dir-level-fade')

        return [
            DirectiveSpec(
                name='title',
                category=DirectiveCategory.FIGURE,
                description='Caption title, usually a file path',
                parser=title_parse,
                examples=['title="src/app/main.ts"'],
            ),
            DirectiveSpec(
                name='dir-level-fade',
                category=DirectiveCategory.FIGURE,
                description='De-emphasize title path segments up to this depth',
                parser=fade_parse,
                aliases=['directory-level-fade'],
                examples=['dir-level-fade=1'],
            ),
            DirectiveSpec(
                name='add-classes',
                category=DirectiveCategory.FIGURE,
                description='CSS classes added to the figure',
                parser=classesMeta_parse,
                examples=['add-classes=wide compact'],
            ),
        ]

    def pre(self, pre: Element, context: BlockContext) -> None:
        context.captionStyle = captionStyle_make(str(pre.properties.get('style', '')))

    def root(self, root: Root, context: BlockContext) -> None:
        pre = root.children[0]
        language = str(pre.properties.get('data-language', context.language))
        preStyle = str(pre.properties.get('style', ''))

        title = context.meta.get('title')
        level = fadeLevel_check(title, context.meta.get('dir-level-fade'))

        pre.properties['data-code-block'] = ''
        pre.properties['data-pagefind-ignore'] = 'all'
        pre.properties['style'] = preStyle + ' overflow-y: hidden;'

        caption = element_create(
            'figcaption',
            {'style': context.captionStyle, 'data-code-caption': '', 'data-language': language},
        )
        if title:
            caption.children.append(element_create(
                'span', {'data-code-title': '', 'style': preStyle},
                titleSpans_make(title, level) or [Text(title)],
            ))
        caption.children.append(
            element_create('span', {'data-code-title-language': ''}, [Text(language)])
        )

        figure = element_create('figure', {'data-code-block-figure': ''}, [caption, pre])
        classes = context.meta.get('add-classes') or []
        if classes:
            figure.classes_add(*classes)
        root.children[0] = figure
