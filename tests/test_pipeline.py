"""
Pipeline orchestrator tests

Tests order validation, hook dispatch, line-level failure isolation and
the meta store lifecycle.
"""

import pytest

from annocode.lib.directives import MetaTransform
from annocode.lib.highlighter import Highlighter
from annocode.lib.pipeline import DEFAULT_ORDER, Pipeline
from annocode.lib.transform import Transform
from annocode.lib.tree import element_create, node_getText
from annocode.models.block import BlockContext
from annocode.models.errors import PipelineConfigError
from annocode.models.tree import Element, Text


def order_with(hook, names):
    order = dict(DEFAULT_ORDER)
    order[hook] = names
    return order


def default_stages():
    return list(Pipeline.default().stages.values())


class Exploding(Transform):
    name = 'boom'
    hooks = frozenset({'line'})

    def line(self, line, index, context):
        raise RuntimeError('boom')


class Marker(Transform):
    name = 'marker'
    hooks = frozenset({'line'})

    def line(self, line, index, context):
        line.properties['data-marked'] = index


class ShapeMarker(Marker):
    name = 'shaped'
    requiresLineShape = True


class PlainMarker(Marker):
    name = 'plain'
    excludesAnnotated = True


class TestValidation:
    """Test pipeline construction checks"""

    def test_default_order(self):
        pipeline = Pipeline.default()
        assert pipeline.order == DEFAULT_ORDER
        assert [s.name for s in pipeline.stages_get('line')] == [
            'line-numbers', 'comments', 'highlight', 'whitespace'
        ]

    def test_dependency_out_of_order(self):
        """comments must follow line-numbers in the line hook"""
        order = order_with('line', ('comments', 'line-numbers', 'highlight', 'whitespace'))
        with pytest.raises(PipelineConfigError, match="requires 'line-numbers'"):
            Pipeline(default_stages(), order)

    def test_whitespace_before_highlight(self):
        order = order_with('line', ('line-numbers', 'comments', 'whitespace', 'highlight'))
        with pytest.raises(PipelineConfigError):
            Pipeline(default_stages(), order)

    def test_implemented_hook_not_ordered(self):
        order = dict(DEFAULT_ORDER)
        del order['root']
        with pytest.raises(PipelineConfigError, match="not ordered"):
            Pipeline(default_stages(), order)

    def test_unknown_stage(self):
        order = order_with('root', ('figure', 'sparkle'))
        with pytest.raises(PipelineConfigError, match="unknown stage 'sparkle'"):
            Pipeline(default_stages(), order)

    def test_stage_without_hook(self):
        order = order_with('pre', ('line-numbers', 'highlight', 'whitespace', 'figure', 'comments'))
        with pytest.raises(PipelineConfigError, match="does not implement 'pre'"):
            Pipeline(default_stages(), order)

    def test_listed_twice(self):
        order = order_with('root', ('figure', 'figure'))
        with pytest.raises(PipelineConfigError, match="twice"):
            Pipeline(default_stages(), order)

    def test_duplicate_stage_names(self):
        with pytest.raises(PipelineConfigError, match="Duplicate"):
            Pipeline([MetaTransform(), MetaTransform()], {'preprocess': ('meta',)})

    def test_bare_pipeline(self):
        pipeline = Pipeline.bare()
        assert list(pipeline.stages) == ['meta']
        assert pipeline.order['line'] == ()

    def test_registry_bound_to_meta_stage(self):
        pipeline = Pipeline.default()
        assert pipeline.stages['meta'].registry is pipeline.registry


class TestLineDispatch:
    """Test the guards around the line hook"""

    def pipeline(self, *stages):
        return Pipeline(
            [MetaTransform(), *stages],
            {'preprocess': ('meta',), 'line': tuple(s.name for s in stages)},
        )

    def test_failing_stage_isolated(self):
        """A stage raising on a line does not stop later stages"""
        pipeline = self.pipeline(Exploding(), Marker())
        line = element_create('span', {}, [Text('x')])
        pipeline.line(line, 4, BlockContext())
        assert line.properties['data-marked'] == 4

    def test_failing_stage_keeps_block(self):
        highlighter = Highlighter(pipeline=self.pipeline(Exploding(), Marker()))
        root = highlighter.tree_build("a\nb", 'text')
        pre = root.children[0]
        lines = [n for n in pre.children[0].children if isinstance(n, Element)]
        assert [line.properties['data-marked'] for line in lines] == [1, 2]
        assert node_getText(pre) == 'a\nb'

    def test_shape_precondition(self):
        """Stages needing the numbered shape skip other lines"""
        pipeline = self.pipeline(ShapeMarker())
        line = element_create('span', {}, [Text('x')])
        pipeline.line(line, 1, BlockContext())
        assert 'data-marked' not in line.properties

    def test_malformed_line_logged(self, messages):
        pipeline = self.pipeline(ShapeMarker())
        pipeline.line(element_create('span', {}, [Text('x')]), 7, BlockContext())
        assert messages == [
            ('WARNING', "Line 7: shaped skipped, malformed line (expected 3 children, found 1)"),
        ]

    def test_excluded_lines(self):
        pipeline = self.pipeline(PlainMarker())
        message = element_create('span', {'data-line-message': ''})
        pipeline.line(message, 1, BlockContext())
        assert 'data-marked' not in message.properties

        plain = element_create('span', {})
        pipeline.line(plain, 2, BlockContext())
        assert plain.properties['data-marked'] == 2


class TestPreprocess:
    """Test the preprocess hook"""

    def test_line_count_and_freeze(self):
        pipeline = Pipeline.default()
        context = pipeline.context_create('start-line=3', 'python')
        code = pipeline.preprocess("a\nb // [!code ++]\nc", context)
        assert code == "a\nb\nc"
        assert context.lineCount == 3
        assert context.language == 'python'
        assert context.meta.frozen
        assert context.numbering == {1: 3, 2: 4, 3: 5}

    def test_contexts_are_independent(self):
        pipeline = Pipeline.default()
        first = pipeline.context_create('start-line=3')
        second = pipeline.context_create()
        pipeline.preprocess("a", first)
        pipeline.preprocess("a // [!code --]", second)
        assert first.numbering == {1: 3}
        assert second.numbering == {1: None}
