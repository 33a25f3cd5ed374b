"""
Single-node and recursive generation of Terraform configuration.

The recursive crawl is depth-first and pre-order. Each call returns its own
``CrawlResult``; the caller appends children's results in traversal order, so
a failure anywhere only ever replaces that node's output with an annotation.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union

from rich.console import Console
from rich.markup import escape

from tfimport.deadline import Deadline
from tfimport.errors import UnresolvedTypeError
from tfimport.ignore import IgnoreRuleEngine
from tfimport.models.node import RESOURCE_TYPE_KEY, ResourceNode
from tfimport.pipeline import ImportReadPipeline
from tfimport.remap import IdentifierRemapper
from tfimport.resolver import ResourceTypeResolver
from tfimport.tree import TreeModel

console = Console(stderr=True)


@dataclass
class ConfigFragment:
    resource_id: str
    resource_type: str
    import_id: str
    text: str

    def render(self) -> str:
        return "\n" + self.text


@dataclass
class ErrorAnnotation:
    resource_id: str
    message: str
    expanding: bool = False

    def render(self) -> str:
        if self.expanding:
            return f"\n# Error expanding {self.resource_id!r}: {self.message}"
        return f"\n# Error: {self.resource_id}: {self.message}"


Fragment = Union[ConfigFragment, ErrorAnnotation]


@dataclass
class CrawlResult:
    fragments: List[Fragment] = field(default_factory=list)

    def extend(self, other: "CrawlResult") -> None:
        self.fragments.extend(other.fragments)

    @property
    def errors(self) -> List[ErrorAnnotation]:
        return [f for f in self.fragments if isinstance(f, ErrorAnnotation)]

    @property
    def resources(self) -> List[ConfigFragment]:
        return [f for f in self.fragments if isinstance(f, ConfigFragment)]

    @property
    def text(self) -> str:
        return "".join(f.render() for f in self.fragments)


class Crawler:
    def __init__(
        self,
        resolver: ResourceTypeResolver,
        ignore_engine: IgnoreRuleEngine,
        remapper: IdentifierRemapper,
        pipeline: ImportReadPipeline,
        tree: TreeModel,
        verbose: bool = False,
    ) -> None:
        self.resolver = resolver
        self.ignore_engine = ignore_engine
        self.remapper = remapper
        self.pipeline = pipeline
        self.tree = tree
        self.verbose = verbose

    def get_fragment(self, node: ResourceNode, deadline: Deadline) -> ConfigFragment:
        resource_type = self.resolver.resolve_node(node, deadline)
        if not resource_type:
            raise UnresolvedTypeError(f"No resource type for {node.id!r}")
        import_id = self.remapper.import_id_for(resource_type, node.id)
        text = self.pipeline.render(import_id, resource_type, deadline)
        return ConfigFragment(node.id, resource_type, import_id, text)

    def get_config(self, node: ResourceNode, deadline: Deadline) -> str:
        """Terraform for ``node`` alone. Errors propagate."""
        return self.get_fragment(node, deadline).text

    def crawl(
        self,
        node: ResourceNode,
        depth: int,
        deadline: Deadline,
        inherited_type: Optional[str] = None,
    ) -> CrawlResult:
        result = CrawlResult()
        try:
            result.fragments.append(self.get_fragment(node, deadline))
        except Exception as exc:
            console.print(f"[yellow]Warning:[/yellow] {node.id}: {escape(str(exc))}")
            result.fragments.append(ErrorAnnotation(node.id, str(exc)))

        if depth <= 0:
            return result

        try:
            children = self.tree.expand_default(node, deadline)
        except Exception as exc:
            console.print(f"[yellow]Warning:[/yellow] expanding {node.id}: {escape(str(exc))}")
            result.fragments.append(ErrorAnnotation(node.id, str(exc), expanding=True))
            return result

        # Children that resolve nothing themselves are filtered by the nearest typed ancestor
        context_type = self._resolved_type(node) or inherited_type
        for child in children:
            rule = self.ignore_engine.explain(child.id, context_type)
            if rule is not None:
                if self.verbose:
                    console.print(f"[dim]Skipping {child.id} ({rule.kind} rule {rule.rule})[/dim]")
                continue
            result.extend(self.crawl(child, depth - 1, deadline, context_type))
        return result

    @staticmethod
    def _resolved_type(node: ResourceNode) -> Optional[str]:
        return node.metadata.get(RESOURCE_TYPE_KEY) or None
