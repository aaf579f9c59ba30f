"""
Figure and caption tests

Tests the caption palette, title runs with and without directory fading,
and the figure wrapper around rendered blocks.
"""

import pytest

from annocode.lib.figure import captionStyle_make, fadeLevel_check, titleSpans_make
from annocode.lib.highlighter import Highlighter
from annocode.lib.tree import node_getText
from annocode.models.tree import Text


SAMPLE_STYLE = '--code-light:#101010;--code-light-bg:#f0f0f0;--code-dark:#ffffff;--code-dark-bg:#202020;'


def runs(spans):
    """(attribute, value, text) for every title run"""
    result = []
    for span in spans:
        (key, value), = span.properties.items()
        result.append((key, value, node_getText(span)))
    return result


def figure_build(meta=None, code="x = 1", language='text'):
    return Highlighter().tree_build(code, language, meta).children[0]


class TestCaptionPalette:
    """Test caption colours derived from the block colours"""

    def test_palette(self):
        assert captionStyle_make(SAMPLE_STYLE) == (
            '--code-caption-light:#404040; --code-caption-light-bg:#d8d8d8; '
            '--code-caption-dark:#cccccc; --code-caption-dark-bg:#303030;'
        )

    def test_other_variables_ignored(self):
        assert captionStyle_make('color: red; --code-light:#000') == '--code-caption-light:#000000;'


class TestTitleRuns:
    """Test splitting the title into faded and emphasized runs"""

    def test_fade_level_one(self):
        """Level 1 fades the first two segments"""
        assert runs(titleSpans_make('a/b/c/file.ts', 1)) == [
            ('data-code-title-prefix', 'fade', 'a/b'),
            ('data-code-title-main', 'fade', '/c/file.ts'),
        ]

    def test_fade_level_zero(self):
        """Zero is a real level, not 'no fade'"""
        assert runs(titleSpans_make('a/b/c', 0)) == [
            ('data-code-title-prefix', 'fade', 'a'),
            ('data-code-title-main', 'fade', '/b/c'),
        ]

    def test_fade_last_level(self):
        """Fading every segment leaves no main run"""
        assert runs(titleSpans_make('a/b/c', 2)) == [
            ('data-code-title-prefix', 'fade', 'a/b/c'),
        ]

    def test_root_and_main(self):
        assert runs(titleSpans_make('src/app.ts', None)) == [
            ('data-code-title-prefix', 'root', 'src'),
            ('data-code-title-main', '', '/app.ts'),
        ]

    def test_single_segment(self):
        assert runs(titleSpans_make('app.ts', None)) == [
            ('data-code-title-prefix', 'root', 'app.ts'),
        ]

    def test_absolute_title_is_plain(self):
        assert titleSpans_make('/etc/hosts', None) == []

    @pytest.mark.parametrize("title,level,expected", [
        ('a/b', 0, 0),
        ('a/b', 1, 1),
        ('a/b', 2, None),
        ('a/b', -1, None),
        ('a/b', None, None),
        (None, 1, None),
    ])
    def test_level_check(self, title, level, expected):
        assert fadeLevel_check(title, level) == expected


class TestFigure:
    """Test the figure built around a rendered block"""

    def test_structure(self):
        figure = figure_build('title=a/b/c/file.ts;dir-level-fade=1')
        assert figure.tagName == 'figure'
        assert 'data-code-block-figure' in figure.properties

        caption, pre = figure.children
        assert caption.tagName == 'figcaption'
        assert pre.tagName == 'pre'
        assert caption.properties['data-language'] == 'text'
        assert caption.properties['style'].startswith('--code-caption-light:')

        title, language = caption.children
        assert 'data-code-title' in title.properties
        assert title.properties['style'] == pre.properties['style'].replace(' overflow-y: hidden;', '')
        assert runs(title.children) == [
            ('data-code-title-prefix', 'fade', 'a/b'),
            ('data-code-title-main', 'fade', '/c/file.ts'),
        ]
        assert 'data-code-title-language' in language.properties
        assert node_getText(language) == 'text'

    def test_alias_directive(self):
        figure = figure_build('title=a/b/c;directory-level-fade=0')
        title = figure.children[0].children[0]
        assert runs(title.children)[0] == ('data-code-title-prefix', 'fade', 'a')

    def test_out_of_range_level_ignored(self):
        """An invalid level falls back to root/main runs"""
        figure = figure_build('title=a/b;dir-level-fade=5')
        title = figure.children[0].children[0]
        assert runs(title.children) == [
            ('data-code-title-prefix', 'root', 'a'),
            ('data-code-title-main', '', '/b'),
        ]

    def test_quoted_absolute_title(self):
        figure = figure_build('title="/etc/hosts"')
        title = figure.children[0].children[0]
        assert title.children == [Text('/etc/hosts')]

    def test_no_title(self):
        """Without a title the caption only names the language"""
        language, = figure_build().children[0].children
        assert 'data-code-title-language' in language.properties

    def test_empty_title(self):
        language, = figure_build('title=""').children[0].children
        assert node_getText(language) == 'text'

    def test_pre_attributes(self):
        pre = figure_build().children[1]
        assert pre.properties['data-code-block'] == ''
        assert pre.properties['data-pagefind-ignore'] == 'all'
        assert pre.properties['style'].endswith('; overflow-y: hidden;')
        assert pre.properties['class'] == ['annocode']
        assert pre.properties['tabindex'] == '0'

    def test_add_classes(self):
        figure = figure_build('add-classes=wide, compact')
        assert figure.classes_get() == ['wide', 'compact']

    def test_no_classes(self):
        assert 'class' not in figure_build().properties
