"""
User-facing actions: "Get Terraform" and "Get Terraform (recursive)".

Actions are offered on nodes whose ID resolves to a known resource type. The
resolved type is cached on the node by ``has_actions`` and copied onto the
action nodes, so invoking an action never repeats the VM probe.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from tfimport.config import RECURSIVE_DEPTH, Settings
from tfimport.crawl import Crawler, CrawlResult
from tfimport.deadline import DEFAULT_TIMEOUT_SECONDS, RECURSIVE_TIMEOUT_SECONDS, Deadline
from tfimport.errors import ActionError
from tfimport.ignore import IgnoreRuleEngine
from tfimport.models.node import RESOURCE_TYPE_KEY, ResourceNode
from tfimport.pipeline import ImportReadPipeline
from tfimport.provider import Provider
from tfimport.remap import IdentifierRemapper
from tfimport.resolver import ResourceClient, ResourceTypeResolver
from tfimport.tree import TreeModel

ACTION_GET_TERRAFORM = "GetTerraform"
ACTION_GET_TERRAFORM_RECURSIVE = "GetTerraformRecursive"

ACTION_ID_KEY = "ActionID"
RESPONSE_TERRAFORM = "terraform"


@dataclass
class ActionNode:
    node: ResourceNode
    display: str
    timeout_seconds: Optional[float] = None

    @property
    def action_id(self) -> str:
        return self.node.metadata.get(ACTION_ID_KEY, "")


@dataclass
class ActionResult:
    content: str
    response_type: str = RESPONSE_TERRAFORM
    crawl: Optional[CrawlResult] = field(default=None, repr=False)


class TerraformImportActions:
    def __init__(
        self,
        crawler: Crawler,
        recursive_depth: int = RECURSIVE_DEPTH,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        recursive_timeout: float = RECURSIVE_TIMEOUT_SECONDS,
    ) -> None:
        self.crawler = crawler
        self.recursive_depth = recursive_depth
        self.timeout = timeout
        self.recursive_timeout = recursive_timeout

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: ResourceClient,
        provider: Provider,
        tree: TreeModel,
    ) -> "TerraformImportActions":
        """Wire the resolver, ignore engine, remapper and pipeline for ``settings``."""
        config = settings.import_config()
        crawler = Crawler(
            resolver=ResourceTypeResolver.from_config(config, client),
            ignore_engine=IgnoreRuleEngine(config),
            remapper=IdentifierRemapper(config),
            pipeline=ImportReadPipeline(provider, settings),
            tree=tree,
            verbose=settings.verbose,
        )
        return cls(
            crawler,
            recursive_depth=settings.recursive_depth,
            timeout=settings.timeout,
            recursive_timeout=settings.recursive_timeout,
        )

    def has_actions(self, node: ResourceNode, deadline: Optional[Deadline] = None) -> bool:
        deadline = deadline or Deadline(self.timeout)
        return bool(self.crawler.resolver.resolve_node(node, deadline))

    def list_actions(self, node: ResourceNode) -> List[ActionNode]:
        resource_type = node.metadata.get(RESOURCE_TYPE_KEY)
        if not resource_type:
            raise ActionError("ResourceTypeName not set")

        def action(action_id: str, display: str, timeout: Optional[float] = None) -> ActionNode:
            metadata: Dict[str, str] = {ACTION_ID_KEY: action_id, RESOURCE_TYPE_KEY: resource_type}
            child = ResourceNode(
                id=f"{node.id}?{action_id}", parent_id=node.id, name=display, metadata=metadata, parent=node
            )
            return ActionNode(child, display, timeout)

        return [
            action(ACTION_GET_TERRAFORM, "Get Terraform"),
            action(ACTION_GET_TERRAFORM_RECURSIVE, "Get Terraform (recursive)", self.recursive_timeout),
        ]

    def execute_action(self, action: ActionNode, deadline: Optional[Deadline] = None) -> ActionResult:
        """Run ``action`` against the node it was listed for."""
        action_id = action.action_id
        target = action.node.parent
        if not action_id:
            raise ActionError(f"ActionID metadata not set: {action.node.id!r}")
        if target is None:
            raise ActionError(f"Action {action.node.id!r} has no target node")

        if action_id == ACTION_GET_TERRAFORM:
            if not action.node.metadata.get(RESOURCE_TYPE_KEY):
                raise ActionError("ResourceTypeName not set")
            deadline = deadline or Deadline(action.timeout_seconds or self.timeout)
            fragment = self.crawler.get_fragment(target, deadline)
            return ActionResult(fragment.text, crawl=CrawlResult([fragment]))

        if action_id == ACTION_GET_TERRAFORM_RECURSIVE:
            deadline = deadline or Deadline(action.timeout_seconds or self.recursive_timeout)
            result = self.crawler.crawl(target, self.recursive_depth, deadline)
            return ActionResult(result.text, crawl=result)

        raise ActionError(f"Unhandled ActionID: {action_id!r}")
