"""
HTML serializer tests
"""

from annocode.lib.html import attribute_render, tree_toHtml
from annocode.lib.tree import element_create
from annocode.models.tree import Root, Text


class TestSerializer:
    """Test tree to HTML serialization"""

    def test_text_escaped(self):
        root = Root([element_create('span', {}, [Text('a < b && "c"')])])
        assert tree_toHtml(root) == '<span>a &lt; b &amp;&amp; "c"</span>'

    def test_attributes(self):
        assert attribute_render('class', ['line', 'diff']) == 'class="line diff"'
        assert attribute_render('data-line', '') == 'data-line=""'
        assert attribute_render('data-line-number-max-digits', 2) == 'data-line-number-max-digits="2"'
        assert attribute_render('title', 'say "hi"') == 'title="say &quot;hi&quot;"'

    def test_nested(self):
        root = Root([
            element_create('pre', {'tabindex': '0'}, [
                element_create('code', {}, [Text('x'), Text('\n'), Text('y')]),
            ]),
        ])
        assert tree_toHtml(root) == '<pre tabindex="0"><code>x\ny</code></pre>'

    def test_void_elements(self):
        root = Root([element_create('br'), element_create('path', {'d': 'M0 0'})])
        assert tree_toHtml(root) == '<br><path d="M0 0"></path>'
