"""
Tagged tree model for highlighted code

A small hast-like tree: text leaves, elements with a tag name, a property
map and ordered children, and a root holding the top-level nodes.

The highlighter produces the conventional shape

    Root
     └── pre
          └── code
               ├── span.line   (one per source line)
               ├── "\\n"
               └── span.line

and every transform rewrites that shape in place.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union


@dataclass
class Text:
    """
    Text leaf

    Attributes:
        value: Raw (unescaped) text
    """
    value: str


@dataclass
class Element:
    """
    Tagged element

    Attributes:
        tagName: Element tag (e.g., "span", "mark", "figure")
        properties: Attribute map. Values are strings, ints, or a list of
                    class tokens for "class". An empty string marks a
                    boolean data attribute (e.g., {"data-line": ""}).
        children: Ordered child nodes
    """
    tagName: str
    properties: Dict[str, Any] = field(default_factory=dict)
    children: List['Node'] = field(default_factory=list)

    def prop_has(self, name: str) -> bool:
        """Check if an attribute is present (boolean attributes are '')"""
        return name in self.properties

    def classes_get(self) -> List[str]:
        """Get class tokens as a list, whatever form they are stored in"""
        classes = self.properties.get('class', [])
        if isinstance(classes, str):
            return classes.split()
        return list(classes)

    def classes_add(self, *names: str) -> None:
        """Append class tokens, keeping existing ones"""
        classes = self.classes_get()
        for name in names:
            if name not in classes:
                classes.append(name)
        self.properties['class'] = classes


@dataclass
class Root:
    """Document-level wrapper holding the block's top-level nodes"""
    children: List['Node'] = field(default_factory=list)


Node = Union[Text, Element]
