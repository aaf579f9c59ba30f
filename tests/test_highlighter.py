"""
Highlighter tests

Tests lexer and style loading, token styling, line splitting and complete
block renders through the default pipeline.
"""

import asyncio

from pygments.styles import get_style_by_name
from pygments.token import Token

from annocode.lib.highlighter import Highlighter, lexer_load, palette_get, style_load
from annocode.lib.tree import node_getText
from annocode.models.tree import Element


def lines_get(root):
    code = root.children[0].children[1].children[0]
    return [node for node in code.children if isinstance(node, Element)]


def code_texts(root):
    return [node_getText(line.children[1]) + node_getText(line.children[2])
            for line in lines_get(root)]


class TestLoading:
    """Test lexer and style resolution"""

    def test_known_lexer(self):
        lexer, language = lexer_load('python')
        assert language == 'python'
        assert 'python' in lexer.aliases

    def test_unknown_lexer_falls_back(self):
        _, language = lexer_load('no-such-language')
        assert language == 'text'

    def test_language_ensure(self):
        highlighter = Highlighter()
        assert asyncio.run(highlighter.language_ensure('python')) == 'python'
        assert asyncio.run(highlighter.language_ensure('no-such-language')) == 'text'
        assert 'python' in Highlighter._lexers

    def test_unknown_language_logged_once(self, messages, monkeypatch):
        """Every block in an unknown language renders, with one warning"""
        monkeypatch.setattr(Highlighter, '_reported', set())
        highlighter = Highlighter()
        for _ in range(3):
            pre = highlighter.tree_build('x', 'zzlang').children[0].children[1]
            assert pre.properties['data-language'] == 'text'
        assert asyncio.run(highlighter.language_ensure('ZZLang')) == 'text'
        warnings = [text for severity, text in messages if severity == 'WARNING']
        assert warnings == ["No lexer for language 'zzlang'; rendering as 'text'"]

    def test_unknown_style_falls_back(self):
        assert style_load('no-such-style') is get_style_by_name('default')

    def test_palette(self):
        foreground, background = palette_get(get_style_by_name('monokai'))
        assert background == '#272822'
        assert foreground.startswith('#') and len(foreground) == 7


class TestTokens:
    """Test token styles and line splitting"""

    def test_token_style_carries_both_themes(self):
        style = Highlighter('default', 'monokai').tokenStyle_get(Token.Keyword)
        assert style.startswith('--code-light:#008000')
        assert '--code-light-font-weight:bold' in style
        assert ';--code-dark:#' in style

    def test_token_style_cached(self):
        highlighter = Highlighter()
        assert highlighter.tokenStyle_get(Token.Name) is highlighter.tokenStyle_get(Token.Name)

    def test_exact_line_count(self):
        highlighter = Highlighter()
        lexer, _ = highlighter.lexer_get('text')
        lines = highlighter.lines_tokenize("a\n\nb", lexer, 3)
        assert [node_getText(line) for line in lines] == ['a', '', 'b']
        assert all(line.classes_get() == ['line'] for line in lines)

    def test_multiline_token_split(self):
        highlighter = Highlighter()
        lexer, _ = highlighter.lexer_get('python')
        lines = highlighter.lines_tokenize('x = """a\nb"""', lexer, 2)
        assert [node_getText(line) for line in lines] == ['x = """a', 'b"""']

    def test_pre_style(self):
        style = Highlighter().preStyle_get()
        keys = [part.split(':')[0] for part in style.split(';') if part]
        assert keys == ['--code-light', '--code-light-bg', '--code-dark', '--code-dark-bg']


class TestBlocks:
    """Test complete block renders"""

    def test_python_block(self):
        root = Highlighter().tree_build("def f():\n    return 1", 'python')
        pre = root.children[0].children[1]
        assert pre.properties['data-language'] == 'python'
        assert code_texts(root) == ['def f():', '    return 1']

    def test_unknown_language_renders_as_text(self):
        root = Highlighter().tree_build("x", 'no-such-language')
        figure = root.children[0]
        assert figure.children[1].properties['data-language'] == 'text'
        assert node_getText(figure.children[0].children[1]) == 'text'

    def test_line_endings_and_trailing_blanks(self):
        root = Highlighter().tree_build("a\r\nb\rc\n\n\n", 'text')
        assert code_texts(root) == ['a', 'b', 'c']

    def test_lines_joined_by_newlines(self):
        root = Highlighter().tree_build("a\nb\nc", 'text')
        code = root.children[0].children[1].children[0]
        assert node_getText(code).count('\n') == 2

    def test_fenced_meta(self):
        root = Highlighter().tree_build("---\nstart-line=7\n---\na\nb", 'text', 'meta=---')
        assert code_texts(root) == ['a', 'b']
        assert [node_getText(line.children[0]) for line in lines_get(root)] == ['7', '8']

    def test_comments_stripped(self):
        root = Highlighter().tree_build("a = 1  # [!code ++]\nb = 2", 'python')
        assert code_texts(root) == ['a = 1', 'b = 2']
        assert lines_get(root)[0].classes_get() == ['line', 'diff', 'add']


class TestInline:
    """Test inline code rendering"""

    def test_inline_element(self):
        code = Highlighter().inline_build('x = 1', 'python')
        assert code.tagName == 'code'
        assert code.properties['data-inline-code'] == ''
        assert code.properties['data-pagefind-ignore'] == 'all'
        assert code.properties['data-language'] == 'python'
        assert node_getText(code) == 'x = 1'

    def test_inline_has_no_line_decoration(self):
        code = Highlighter().inline_build('a // [!code ++]', 'js')
        assert node_getText(code) == 'a // [!code ++]'
        assert all('data-line' not in child.properties for child in code.children)
