"""
Directive registry and meta parsing for annocode

Each stage contributes DirectiveSpec objects for the directive names it
owns; the registry maps names (and aliases) to those specs. At preprocess
the meta stage parses the block's meta string, merges in any fenced meta
block found in the code body, and runs every registered parser so each
directive has a typed value (its default when absent or malformed).
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from ..models.block import BlockContext
from ..models.directives import DirectiveSpec, DirectiveCategory, DirectiveParser
from .log import LOG
from .transform import Transform


_META_TERM = re.compile(r'^\s*([a-z-]+)\s*=\s*(.+?)\s*$')
_CLASS_TOKEN = re.compile(r'^-?[_a-zA-Z][_a-zA-Z0-9-]*$')
_TRUE_WORDS = {'true', 'yes', 'on', '1'}
_FALSE_WORDS = {'false', 'no', 'off', '0'}


class DirectiveRegistry:
    """
    Registry of directive specifications

    Maps directive names and aliases to DirectiveSpec objects. Assembled
    once per pipeline from the stages' declarations and not modified while
    blocks render.
    """

    def __init__(self, specs: Optional[List[DirectiveSpec]] = None) -> None:
        """Initialize the registry, optionally with a list of specs"""
        self.specs: Dict[str, DirectiveSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: DirectiveSpec) -> None:
        """Register a directive specification"""
        for name in [spec.name, *spec.aliases]:
            existing = self.specs.get(name)
            if existing is not None and existing is not spec:
                LOG(f"Directive '{name}' re-registered; replacing "
                    f"'{existing.name}'", level=1, severity="WARNING")
            self.specs[name] = spec

    def get(self, name: str) -> Optional[DirectiveParser]:
        """
        Get directive parser by name

        Args:
            name: Directive name or alias to look up

        Returns:
            Parser function or None if not registered
        """
        spec = self.spec_get(name)
        return spec.parser if spec else None

    def spec_get(self, name: str) -> Optional[DirectiveSpec]:
        """Get full directive specification by name or alias"""
        return self.specs.get(name)

    def specs_list(self) -> List[DirectiveSpec]:
        """Get each registered spec once, in registration order"""
        unique: List[DirectiveSpec] = []
        for spec in self.specs.values():
            if spec not in unique:
                unique.append(spec)
        return unique

    def directives_listByCategory(self, category: DirectiveCategory) -> List[DirectiveSpec]:
        """Get all directives in a category"""
        return [spec for spec in self.specs_list() if spec.category == category]

    def canonical_get(self, name: str) -> Optional[str]:
        """Resolve an alias to its canonical directive name"""
        spec = self.spec_get(name)
        return spec.name if spec else None

    def __contains__(self, name: object) -> bool:
        return name in self.specs


# ---------------------------------------------------------------------------
# Value parsers
# ---------------------------------------------------------------------------

def stringMeta_parse(raw: Optional[str]) -> Optional[str]:
    """Trimmed text, or None when absent or blank"""
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def intMeta_parse(
    raw: Optional[str],
    default: Optional[int] = None,
    minimum: Optional[int] = None,
    name: str = '',
) -> Optional[int]:
    """
    Parse an integer directive value

    Zero is a valid value. Non-numeric text and values below minimum are
    logged and replaced by default.
    """
    text = stringMeta_parse(raw)
    if text is None:
        return default
    try:
        value = int(text)
    except ValueError:
        LOG(f"Directive '{name}': '{text}' is not an integer; using {default}",
            level=1, severity="WARNING")
        return default
    if minimum is not None and value < minimum:
        LOG(f"Directive '{name}': {value} is below {minimum}; using {default}",
            level=1, severity="WARNING")
        return default
    return value


def boolMeta_parse(raw: Optional[str], default: bool, name: str = '') -> bool:
    """Parse true/false, yes/no, on/off or 1/0 (case-insensitive)"""
    text = stringMeta_parse(raw)
    if text is None:
        return default
    word = text.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    LOG(f"Directive '{name}': '{text}' is not a boolean; using {default}",
        level=1, severity="WARNING")
    return default


def quotedMeta_parse(raw: Optional[str]) -> Optional[str]:
    """Trimmed text with one pair of surrounding quotes removed"""
    text = stringMeta_parse(raw)
    if text is None:
        return None
    if len(text) >= 2 and text[0] == text[-1] and text[0] in '"\'':
        text = text[1:-1]
    return text or None


def classesMeta_parse(raw: Optional[str], name: str = 'add-classes') -> List[str]:
    """
    Parse a list of CSS class tokens

    Tokens are separated by whitespace or commas. Tokens that are not valid
    class names are logged and dropped.
    """
    text = stringMeta_parse(quotedMeta_parse(raw))
    if text is None:
        return []
    classes: List[str] = []
    for token in re.split(r'[\s,]+', text):
        if not token:
            continue
        if not _CLASS_TOKEN.match(token):
            LOG(f"Directive '{name}': dropping invalid class '{token}'",
                level=1, severity="WARNING")
            continue
        if token not in classes:
            classes.append(token)
    return classes


# ---------------------------------------------------------------------------
# Meta string and fenced meta block
# ---------------------------------------------------------------------------

def metaTerm_parse(term: str) -> Optional[Tuple[str, str]]:
    """Match a single 'key=value' term, returning (key, raw value)"""
    match = _META_TERM.match(term)
    if not match:
        return None
    return match.group(1), match.group(2)


def meta_parse(meta: Optional[str]) -> Dict[str, str]:
    """
    Parse a meta directive string into raw directive text

    Terms are separated by ';'. A first term without '=' is a free-form
    token (e.g. a file label) and is ignored; later terms that do not match
    'key=value' are logged and ignored. Later keys override earlier ones.

    Args:
        meta: Meta string, e.g. 'start-line=5; title="src/app.ts"'

    Returns:
        Directive name -> raw value text

    Example:
        >>> meta_parse('demo; start-line=5; tab-size=2')
        {'start-line': '5', 'tab-size': '2'}
    """
    raw: Dict[str, str] = {}
    if not meta:
        return raw
    for position, term in enumerate(meta.split(';')):
        if not term.strip():
            continue
        parsed = metaTerm_parse(term)
        if parsed is None:
            if position > 0 or '=' in term:
                LOG(f"Ignoring malformed meta term '{term.strip()}'",
                    level=1, severity="WARNING")
            continue
        key, value = parsed
        raw[key] = value
    return raw


def fencedMeta_extract(code: str, fence: str) -> Tuple[str, Dict[str, str]]:
    """
    Extract a fenced meta block from a code body

    The first two lines whose stripped text equals the fence delimit the
    block. Lines between them are parsed as 'key=value'; the fence lines and
    everything between them are removed from the code. Lines before and
    after the block are kept.

    Args:
        code: Code body
        fence: Fence marker, e.g. '---'

    Returns:
        (code without the fenced block, directive name -> raw value text)
    """
    lines = code.split('\n')
    fences = [i for i, line in enumerate(lines) if line.strip() == fence][:2]
    if len(fences) < 2:
        LOG(f"Meta fence '{fence}' needs an opening and a closing line; "
            "ignoring", level=1, severity="WARNING")
        return code, {}

    start, end = fences
    raw: Dict[str, str] = {}
    for line in lines[start + 1:end]:
        if not line.strip():
            continue
        parsed = metaTerm_parse(line)
        if parsed is None:
            LOG(f"Ignoring malformed fenced meta line '{line.strip()}'",
                level=1, severity="WARNING")
            continue
        key, value = parsed
        raw[key] = value

    remaining = lines[:start] + lines[end + 1:]
    return '\n'.join(remaining), raw


class MetaTransform(Transform):
    """
    Builds the block's meta store

    Owns the 'meta' directive naming the fence of an in-body meta block.
    """

    name = 'meta'
    hooks = frozenset({'preprocess'})

    def __init__(self, registry: Optional[DirectiveRegistry] = None) -> None:
        self.registry = registry if registry is not None else DirectiveRegistry()

    def registry_bind(self, registry: DirectiveRegistry) -> None:
        self.registry = registry

    def directives(self) -> List[DirectiveSpec]:
        return [
            DirectiveSpec(
                name='meta',
                category=DirectiveCategory.META,
                description='Fence marker delimiting a key=value block inside the code',
                parser=stringMeta_parse,
                examples=['meta=---'],
            ),
        ]

    def preprocess(self, code: str, context: BlockContext) -> str:
        raw = meta_parse(context.metaRaw)

        fence = stringMeta_parse(raw.get('meta'))
        if fence is not None:
            code, fenced = fencedMeta_extract(code, fence)
            raw.update(fenced)

        canonical: Dict[str, str] = {}
        for key, value in raw.items():
            name = self.registry.canonical_get(key)
            if name is None:
                LOG(f"Unknown directive '{key}'", level=1, severity="WARNING")
                continue
            canonical[name] = value

        for spec in self.registry.specs_list():
            value: Any = spec.parser(canonical.get(spec.name))
            context.meta.set(spec.name, value)
            LOG(f"meta {spec.name} = {value!r}", level=3)
        return code
