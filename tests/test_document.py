"""
Document integration tests

Tests finding and replacing block and inline code in HTML documents,
including isolation of blocks that fail to render.
"""

import asyncio

from bs4 import BeautifulSoup

from annocode.lib.document import (
    DocumentRenderer,
    blockCode_find,
    block_render,
    document_render,
    inlineCode_find,
)
from annocode.lib.highlighter import Highlighter


class FragileHighlighter(Highlighter):
    """Fails on any block containing 'explode'"""

    def tree_build(self, code, language='text', meta=None):
        if 'explode' in code:
            raise RuntimeError('cannot render')
        return super().tree_build(code, language, meta)


class BrokenLoader(Highlighter):
    """Cannot load the 'broken' language"""

    async def language_ensure(self, language):
        if language == 'broken':
            raise ImportError('lexer module missing')
        return await super().language_ensure(language)


def render(html, highlighter=None):
    renderer = DocumentRenderer(highlighter)
    output = asyncio.run(renderer.render(html))
    return BeautifulSoup(output, 'html.parser'), renderer.report


class TestDiscovery:
    """Test which code elements are picked up"""

    def test_block_code(self):
        soup = BeautifulSoup(
            '<pre><code class="language-ts" data-meta="start-line=2">let a = 1</code></pre>'
            '<pre><code>no language</code></pre>'
            '<pre><code class="language-py"><span>markup</span></code></pre>',
            'html.parser',
        )
        instance, = blockCode_find(soup)
        assert instance.language == 'ts'
        assert instance.meta == 'start-line=2'
        assert instance.code == 'let a = 1'

    def test_inline_code(self):
        soup = BeautifulSoup(
            '<p><code>a{:py}</code> <code><b>x</b></code></p>'
            '<pre><code class="language-py">b</code></pre>',
            'html.parser',
        )
        found = inlineCode_find(soup)
        assert [code.string for code in found] == ['a{:py}']


class TestBlocks:
    """Test block replacement"""

    def test_block_replaced_by_figure(self):
        soup, report = render(
            '<p>Intro</p>'
            '<pre><code class="language-python" data-meta="start-line=3;title=app.py">'
            'x = 1\ny = 2\n</code></pre>'
        )
        figure = soup.select_one('figure[data-code-block-figure]')
        assert figure is not None
        assert soup.select_one('p').get_text() == 'Intro'
        assert figure.select_one('[data-code-title-prefix]').get_text() == 'app.py'
        numbers = [n.get_text() for n in figure.select('[data-line-number]')]
        assert numbers == ['3', '4']
        assert soup.select('code.language-python') == []
        assert report.blocks == 1
        assert report.languages == ['python']

    def test_failed_block_left_in_place(self):
        """A block that fails does not stop the others"""
        soup, report = render(
            '<pre><code class="language-text">explode</code></pre>'
            '<pre><code class="language-text">fine</code></pre>',
            FragileHighlighter(),
        )
        assert soup.select_one('code.language-text').get_text() == 'explode'
        assert len(soup.select('figure')) == 1
        assert report.blocks == 1
        assert report.blocksFailed == 1

    def test_markup_blocks_untouched(self):
        html = '<pre><code class="language-py"><span>x</span></code></pre>'
        soup, report = render(html)
        assert str(soup) == html
        assert report.blocks == 0

    def test_unknown_language(self):
        soup, report = render('<pre><code class="language-nosuchlang">x</code></pre>')
        assert soup.select_one('pre')['data-language'] == 'text'
        assert report.languages == ['text']

    def test_unknown_language_warned_once(self, messages, monkeypatch):
        monkeypatch.setattr(Highlighter, '_reported', set())
        html = '<pre><code class="language-zzdoc">x</code></pre>' * 3
        soup, report = render(html)
        Highlighter().tree_build('y', 'zzdoc')
        assert report.blocks == 3
        warnings = [text for severity, text in messages if severity == 'WARNING']
        assert warnings == ["No lexer for language 'zzdoc'; rendering as 'text'"]

    def test_languages_reported_once(self):
        soup, report = render(
            '<pre><code class="language-nosuchlang">x</code></pre>'
            '<pre><code class="language-otherlang">y</code></pre>'
            '<pre><code class="language-python">z</code></pre>'
        )
        assert report.languages == ['text', 'python']
        assert report.blocks == 3

    def test_language_load_failure_isolated(self):
        """A language that fails to load only fails its own blocks"""
        soup, report = render(
            '<pre><code class="language-broken">x</code></pre>'
            '<pre><code class="language-python">y = 1</code></pre>',
            BrokenLoader(),
        )
        assert report.languages == ['python']
        assert report.blocks == 1
        assert report.blocksFailed == 1
        assert soup.select_one('code.language-broken').get_text() == 'x'

    def test_block_render(self):
        html = block_render("a = 1", 'python', 'title=x.py')
        assert html.startswith('<figure data-code-block-figure="">')
        assert 'data-language="python"' in html


class TestInline:
    """Test inline code replacement"""

    def test_language_suffix(self):
        soup, report = render('<p>Call <code>print(1){:python}</code> now</p>')
        code = soup.select_one('code[data-inline-code]')
        assert code['data-language'] == 'python'
        assert code['data-pagefind-ignore'] == 'all'
        assert code.get_text() == 'print(1)'
        assert report.inline == 1

    def test_plain_inline(self):
        """Code without a language suffix is rendered as plain text"""
        soup, report = render('<p><code>plain text</code></p>')
        code = soup.select_one('code')
        assert code['data-inline-code'] == ''
        assert code['data-language'] == 'text'
        assert code['style'].startswith('--code-light:')
        assert code.get_text() == 'plain text'
        assert report.inline == 1

    def test_document_render(self):
        output = asyncio.run(document_render('<p><code>x{:js}</code></p>'))
        assert 'data-inline-code=""' in output
        assert 'data-language="js"' in output
