"""
Document integration

Finds code in an HTML document and replaces every instance with its
rendering.

Block code:
    <pre><code class="language-ts" data-meta="start-line=3">...</code></pre>
    becomes a captioned figure. The code element must hold plain text only.

Inline code:
    <code>let x = 1{:ts}</code>     highlighted as TypeScript
    <code>plain</code>              rendered in the fallback language
    becomes <code data-inline-code data-pagefind-ignore="all">...</code>.

Blocks render concurrently. A block that fails is logged and left as it
was; the other blocks are unaffected.
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from ..config import appsettings
from .highlighter import Highlighter
from .html import node_render, tree_toHtml
from .log import LOG


_INLINE_LANGUAGE = re.compile(r'^(.+)\{:(\w+)\}$', re.DOTALL)


@dataclass
class CodeInstance:
    """One block code element found in the document"""
    element: Tag
    code: str
    language: str
    meta: Optional[str] = None


@dataclass
class RenderReport:
    """Counts from one document render"""
    blocks: int = 0
    blocksFailed: int = 0
    inline: int = 0
    languages: List[str] = field(default_factory=list)


def blockCode_find(soup: BeautifulSoup) -> List[CodeInstance]:
    """Collect pre > code.language-* elements holding a single text child"""
    instances: List[CodeInstance] = []
    for code in soup.select('pre > code'):
        languages = [c[len('language-'):] for c in code.get('class', [])
                     if c.startswith('language-')]
        if not languages:
            continue
        if len(code.contents) != 1 or not isinstance(code.contents[0], NavigableString):
            continue
        instances.append(CodeInstance(
            element=code,
            code=str(code.contents[0]),
            language=languages[0],
            meta=code.get('data-meta'),
        ))
    return instances


def inlineCode_find(soup: BeautifulSoup) -> List[Tag]:
    """Collect code elements outside pre holding only text"""
    return [code for code in soup.find_all('code')
            if code.find_parent('pre') is None
            and len(code.contents) == 1
            and isinstance(code.contents[0], NavigableString)
            and not code.has_attr('data-inline-code')]


def fragment_parse(markup: str) -> Tag:
    """Parse rendered markup back into a single bs4 element"""
    fragment = BeautifulSoup(markup, 'html.parser')
    return next(node for node in fragment.contents if isinstance(node, Tag))


def block_render(code: str, language: str = 'text', meta: Optional[str] = None,
                 highlighter: Optional[Highlighter] = None) -> str:
    """
    Render a single code block to HTML

    Args:
        code: Source text
        language: Language alias
        meta: Meta directive string
        highlighter: Highlighter to use (a default one if omitted)

    Returns:
        HTML of the rendered block
    """
    highlighter = highlighter if highlighter is not None else Highlighter()
    return tree_toHtml(highlighter.tree_build(code, language, meta))


class DocumentRenderer:
    """Renders every code instance of HTML documents"""

    def __init__(self, highlighter: Optional[Highlighter] = None) -> None:
        self.highlighter = highlighter if highlighter is not None else Highlighter()
        self.report = RenderReport()

    async def block_renderAsync(self, instance: CodeInstance) -> Optional[str]:
        """Render one block; failures are logged and give None"""
        try:
            language = await self.highlighter.language_ensure(instance.language)
            return tree_toHtml(
                self.highlighter.tree_build(instance.code, language, instance.meta)
            )
        except Exception as error:
            LOG(f"Code block [{instance.language}] failed to render: {error!r}",
                level=1, severity="ERROR")
            return None

    def inline_render(self, code: Tag) -> str:
        text = str(code.string)
        match = _INLINE_LANGUAGE.match(text)
        if match:
            source, language = match.groups()
        else:
            source, language = text, appsettings.fallback_language
        return node_render(self.highlighter.inline_build(source, language))

    async def render(self, html: str) -> str:
        """
        Render all block and inline code in a document

        Args:
            html: Document or fragment markup

        Returns:
            Markup with every code instance replaced by its rendering
        """
        soup = BeautifulSoup(html, 'html.parser')
        self.report = RenderReport()

        blocks = blockCode_find(soup)
        languages = sorted({block.language.lower() for block in blocks})
        loaded = await asyncio.gather(
            *(self.highlighter.language_ensure(language) for language in languages),
            return_exceptions=True,
        )
        for language, resolved in zip(languages, loaded):
            if isinstance(resolved, Exception):
                LOG(f"Loading language '{language}' failed: {resolved!r}",
                    level=1, severity="ERROR")
            elif resolved not in self.report.languages:
                self.report.languages.append(resolved)
        LOG(f"Found {len(blocks)} code blocks in {len(languages)} languages", level=2)

        results = await asyncio.gather(*(self.block_renderAsync(block) for block in blocks))
        for block, markup in zip(blocks, results):
            if markup is None:
                self.report.blocksFailed += 1
                continue
            block.element.parent.replace_with(fragment_parse(markup))
            self.report.blocks += 1

        for code in inlineCode_find(soup):
            try:
                code.replace_with(fragment_parse(self.inline_render(code)))
                self.report.inline += 1
            except Exception as error:
                LOG(f"Inline code '{code.string}' failed to render: {error!r}",
                    level=1, severity="ERROR")

        LOG(f"Rendered {self.report.blocks} blocks ({self.report.blocksFailed} failed), "
            f"{self.report.inline} inline", level=1)
        return str(soup)


async def document_render(html: str, highlighter: Optional[Highlighter] = None) -> str:
    """Render all code in an HTML document with a fresh DocumentRenderer"""
    return await DocumentRenderer(highlighter).render(html)
