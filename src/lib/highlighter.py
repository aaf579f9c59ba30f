"""
Pygments adapter for annocode

Turns Pygments token streams into the tree the transforms work on, running
the pipeline hooks around tokenisation:

    preprocess  meta, annotation comments, numbering map, highlight segments
    tokenize    one span.line per source line, one styled span per token
    line        each line in turn
    pre         pre > code wrapper with the block's theme colours
    root        the finished fragment

Every token carries both palettes as CSS variables (--code-light and
--code-dark), so one rendering serves light and dark page themes.

Lexers are cached per language for the whole process. The cache only ever
grows, so concurrent block renders can share it without locking.
"""

import asyncio
from typing import ClassVar, Dict, List, Optional, Set, Tuple

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, TextLexer
from pygments.style import StyleMeta
from pygments.styles import get_style_by_name
from pygments.token import Token, _TokenType
from pygments.util import ClassNotFound

from ..config import appsettings
from ..models.tree import Element, Root, Text
from .log import LOG
from .pipeline import Pipeline
from .tree import color_normalize, element_create


def lexer_load(language: str) -> Tuple[Lexer, str]:
    """
    Load a lexer by language alias

    Unknown languages get the fallback language's lexer (plain text by
    default).

    Returns:
        (lexer, language name the block is rendered as)
    """
    try:
        return get_lexer_by_name(language, stripnl=False), language
    except ClassNotFound:
        fallback = appsettings.fallback_language
        try:
            return get_lexer_by_name(fallback, stripnl=False), fallback
        except ClassNotFound:
            return TextLexer(stripnl=False), 'text'


def style_load(name: str) -> StyleMeta:
    """Load a Pygments style, falling back to 'default' if it is unknown"""
    try:
        return get_style_by_name(name)
    except ClassNotFound:
        LOG(f"Unknown Pygments style '{name}'; using 'default'",
            level=1, severity="WARNING")
        return get_style_by_name('default')


def palette_get(style: StyleMeta) -> Tuple[str, str]:
    """
    Get the (foreground, background) colours of a style

    Styles without a base text colour get black or white, whichever
    contrasts with the background.
    """
    background = color_normalize(style.background_color or '') or '#ffffff'
    foreground = color_normalize(style.style_for_token(Token.Text)['color'] or '')
    if foreground is None:
        channels = [int(background[i:i + 2], 16) for i in (1, 3, 5)]
        foreground = '#000000' if sum(channels) > 384 else '#ffffff'
    return foreground, background


class Highlighter:
    """
    Renders code blocks through Pygments and the transform pipeline

    Attributes:
        lightStyle: Pygments style for the light palette
        darkStyle: Pygments style for the dark palette
        pipeline: Transform pipeline run on every block
        inlinePipeline: Reduced pipeline for inline code
    """

    # language alias -> (lexer, rendered language); shared by every instance
    _lexers: ClassVar[Dict[str, Tuple[Lexer, str]]] = {}
    _reported: ClassVar[Set[str]] = set()

    def __init__(
        self,
        light_style: Optional[str] = None,
        dark_style: Optional[str] = None,
        pipeline: Optional[Pipeline] = None,
    ) -> None:
        self.lightStyle = style_load(light_style or appsettings.light_style)
        self.darkStyle = style_load(dark_style or appsettings.dark_style)
        self.pipeline = pipeline if pipeline is not None else Pipeline.default()
        self.inlinePipeline = Pipeline.bare()

        self.lightFg, self.lightBg = palette_get(self.lightStyle)
        self.darkFg, self.darkBg = palette_get(self.darkStyle)
        self._tokenStyles: Dict[_TokenType, str] = {}

    # -----------------------------------------------------------------
    # Lexer cache
    # -----------------------------------------------------------------

    async def language_ensure(self, language: str) -> str:
        """
        Make sure a lexer for language is loaded

        Loading runs in a worker thread; Pygments imports lexer modules on
        first use.

        Returns:
            Language name blocks in this language are rendered as
        """
        key = (language or appsettings.fallback_language).lower()
        if key not in Highlighter._lexers:
            loaded = await asyncio.to_thread(lexer_load, key)
            Highlighter._lexers.setdefault(key, loaded)
        return self.lexer_get(key)[1]

    def lexer_get(self, language: str) -> Tuple[Lexer, str]:
        """Get the cached lexer for language, loading it now if needed"""
        key = (language or appsettings.fallback_language).lower()
        if key not in Highlighter._lexers:
            Highlighter._lexers.setdefault(key, lexer_load(key))
        lexer, resolved = Highlighter._lexers[key]
        if resolved != key and key not in Highlighter._reported:
            Highlighter._reported.add(key)
            LOG(f"No lexer for language '{key}'; rendering as '{resolved}'",
                level=1, severity="WARNING")
        return lexer, resolved

    # -----------------------------------------------------------------
    # Tokens to tree
    # -----------------------------------------------------------------

    def tokenStyle_get(self, ttype: _TokenType) -> str:
        """Inline style carrying a token's light and dark colours"""
        style = self._tokenStyles.get(ttype)
        if style is not None:
            return style

        declarations: List[str] = []
        for theme, pygStyle, fallback in (('light', self.lightStyle, self.lightFg),
                                          ('dark', self.darkStyle, self.darkFg)):
            known = ttype
            while not pygStyle.styles_token(known) and known.parent is not None:
                known = known.parent
            info = pygStyle.style_for_token(known)
            color = color_normalize(info['color'] or '') or fallback
            declarations.append(f"--code-{theme}:{color}")
            if info['italic']:
                declarations.append(f"--code-{theme}-font-style:italic")
            if info['bold']:
                declarations.append(f"--code-{theme}-font-weight:bold")
        style = ';'.join(declarations)
        self._tokenStyles[ttype] = style
        return style

    def lines_tokenize(self, code: str, lexer: Lexer, lineCount: int) -> List[Element]:
        """
        Tokenize code into one span.line per source line

        Tokens spanning a newline are split across lines. The result always
        has exactly lineCount lines.
        """
        lines: List[Element] = [element_create('span', {'class': ['line']})]
        for ttype, value in lexer.get_tokens(code):
            style = self.tokenStyle_get(ttype)
            for position, part in enumerate(value.split('\n')):
                if position > 0:
                    lines.append(element_create('span', {'class': ['line']}))
                if part:
                    lines[-1].children.append(
                        element_create('span', {'style': style}, [Text(part)])
                    )
        lines = lines[:lineCount]
        while len(lines) < lineCount:
            lines.append(element_create('span', {'class': ['line']}))
        return lines

    def preStyle_get(self) -> str:
        return (f"--code-light:{self.lightFg};--code-light-bg:{self.lightBg};"
                f"--code-dark:{self.darkFg};--code-dark-bg:{self.darkBg};")

    def tree_build(self, code: str, language: str = 'text', meta: Optional[str] = None) -> Root:
        """
        Render one code block to a tree

        Args:
            code: Source text
            language: Language alias, e.g. 'python' or 'ts'
            meta: Meta directive string, e.g. 'start-line=5;title=app.py'

        Returns:
            Root holding the rendered block (a figure with the default
            pipeline)
        """
        lexer, resolved = self.lexer_get(language)
        context = self.pipeline.context_create(meta, resolved)

        code = code.replace('\r\n', '\n').replace('\r', '\n').rstrip()
        code = self.pipeline.preprocess(code, context)
        LOG(f"Block [{resolved}]: {context.lineCount} lines, meta '{context.metaRaw}'", level=2)

        codeElement = element_create('code')
        for index, line in enumerate(self.lines_tokenize(code, lexer, context.lineCount), start=1):
            self.pipeline.line(line, index, context)
            if index > 1:
                codeElement.children.append(Text('\n'))
            codeElement.children.append(line)

        pre = element_create('pre', {
            'class': ['annocode'],
            'style': self.preStyle_get(),
            'tabindex': '0',
            'data-language': resolved,
        }, [codeElement])
        self.pipeline.pre(pre, context)

        root = Root([pre])
        self.pipeline.root(root, context)
        return root

    def inline_build(self, code: str, language: str = 'text') -> Element:
        """
        Render inline code to a single code element

        Only the reduced pipeline runs: no numbering, highlighting or figure.
        """
        lexer, resolved = self.lexer_get(language)
        context = self.inlinePipeline.context_create(None, resolved)
        code = self.inlinePipeline.preprocess(code.replace('\n', ' '), context)

        children = []
        for line in self.lines_tokenize(code, lexer, 1):
            children.extend(line.children)
        return element_create('code', {
            'data-inline-code': '',
            'data-pagefind-ignore': 'all',
            'data-language': resolved,
            'style': self.preStyle_get(),
        }, children)
