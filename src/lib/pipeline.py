"""
Pipeline orchestrator for annocode

Runs the transform stages at four hook points in an explicit, validated
order. The default configuration is

    preprocess: meta, comments, line-numbers, highlight
    line:       line-numbers, comments, highlight, whitespace
    pre:        line-numbers, highlight, whitespace, figure
    root:       figure

Construction fails with PipelineConfigError if a stage is listed for a hook
it does not implement, if a stage that implements a hook is missing from
it, or if a stage's declared dependencies do not precede it.
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..models.block import BlockContext
from ..models.errors import PipelineConfigError
from ..models.tree import Element, Root
from .comments import CommentsTransform
from .directives import DirectiveRegistry, MetaTransform
from .figure import FigureTransform
from .highlight import HighlightTransform
from .linenumber import LineNumberTransform
from .log import LOG
from .transform import HOOKS, Transform, lineExcluded_is, lineShape_check
from .whitespace import WhitespaceTransform


DEFAULT_ORDER: Dict[str, Tuple[str, ...]] = {
    'preprocess': ('meta', 'comments', 'line-numbers', 'highlight'),
    'line': ('line-numbers', 'comments', 'highlight', 'whitespace'),
    'pre': ('line-numbers', 'highlight', 'whitespace', 'figure'),
    'root': ('figure',),
}


class Pipeline:
    """
    Ordered transform stages sharing one directive registry

    A Pipeline is immutable once built and may serve many blocks, including
    concurrently: all per-block state lives in the BlockContext each call
    receives.

    Attributes:
        registry: Directives declared by every stage
        stages: Stage name -> stage
        order: Hook -> stage names in run order
    """

    def __init__(
        self,
        stages: Sequence[Transform],
        order: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        self.registry = DirectiveRegistry()
        self.stages: Dict[str, Transform] = {}
        for stage in stages:
            if stage.name in self.stages:
                raise PipelineConfigError(f"Duplicate stage name '{stage.name}'")
            self.stages[stage.name] = stage

        source = DEFAULT_ORDER if order is None else order
        self.order: Dict[str, Tuple[str, ...]] = {
            hook: tuple(source.get(hook, ())) for hook in HOOKS
        }
        self.order_validate()

        for stage in self.stages.values():
            for spec in stage.directives():
                self.registry.register(spec)
        for stage in self.stages.values():
            stage.registry_bind(self.registry)

    @classmethod
    def default(cls) -> 'Pipeline':
        """Build the standard pipeline with every transform"""
        return cls([
            MetaTransform(),
            CommentsTransform(),
            LineNumberTransform(),
            HighlightTransform(),
            WhitespaceTransform(),
            FigureTransform(),
        ])

    @classmethod
    def bare(cls) -> 'Pipeline':
        """Build a pipeline that only reads the meta string (inline code)"""
        return cls([MetaTransform()], {"preprocess": ("meta",)})

    def order_validate(self) -> None:
        """
        Check the hook order against the stages' declarations

        Raises:
            PipelineConfigError: On unknown hooks or stages, stages listed
                for hooks they do not implement, implemented hooks with the
                stage missing, or dependencies that do not run earlier
        """
        for name, stage in self.stages.items():
            unknown = set(stage.hooks) - set(HOOKS)
            if unknown:
                raise PipelineConfigError(f"Stage '{name}' declares unknown hooks {sorted(unknown)}")
            for hook in stage.hooks:
                if name not in self.order[hook]:
                    raise PipelineConfigError(f"Stage '{name}' implements '{hook}' but is not ordered in it")

        for hook, names in self.order.items():
            seen: List[str] = []
            for name in names:
                stage = self.stages.get(name)
                if stage is None:
                    raise PipelineConfigError(f"Hook '{hook}' lists unknown stage '{name}'")
                if hook not in stage.hooks:
                    raise PipelineConfigError(f"Stage '{name}' does not implement '{hook}'")
                if name in seen:
                    raise PipelineConfigError(f"Stage '{name}' is listed twice in '{hook}'")
                for dependency in stage.requires.get(hook, ()):
                    if dependency not in seen:
                        raise PipelineConfigError(
                            f"Stage '{name}' requires '{dependency}' to run before it in '{hook}'"
                        )
                seen.append(name)

    def stages_get(self, hook: str) -> List[Transform]:
        """Get the stages run at a hook, in order"""
        return [self.stages[name] for name in self.order[hook]]

    def context_create(self, meta: Optional[str] = None, language: str = 'text') -> BlockContext:
        """Create a fresh context for one block"""
        return BlockContext(metaRaw=meta or '', language=language)

    def preprocess(self, code: str, context: BlockContext) -> str:
        """Run the preprocess hook, then freeze the meta store"""
        for stage in self.stages_get('preprocess'):
            code = stage.preprocess(code, context)
        context.lineCount = len(code.split('\n'))
        context.meta.freeze()
        return code

    def line(self, line: Element, index: int, context: BlockContext) -> None:
        """
        Run the line hook on one rendered line

        A stage that fails on a line is logged and the line keeps whatever
        earlier stages produced; later stages still run.
        """
        for stage in self.stages_get('line'):
            if stage.excludesAnnotated and lineExcluded_is(line, index, context):
                continue
            if stage.requiresLineShape:
                problem = lineShape_check(line)
                if problem is not None:
                    LOG(f"Line {index}: {stage.name} skipped, malformed line ({problem})",
                        level=1, severity="WARNING")
                    continue
            try:
                stage.line(line, index, context)
            except Exception as error:
                LOG(f"Line {index}: {stage.name} failed: {error!r}",
                    level=1, severity="ERROR")

    def pre(self, pre: Element, context: BlockContext) -> None:
        """Run the pre hook on the block wrapper"""
        for stage in self.stages_get('pre'):
            stage.pre(pre, context)

    def root(self, root: Root, context: BlockContext) -> None:
        """Run the root hook on the finished fragment"""
        for stage in self.stages_get('root'):
            stage.root(root, context)
