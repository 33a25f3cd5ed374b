from dataclasses import dataclass, field
from typing import Dict, Optional

# Node metadata key holding the resolved resource type ("" = unmodeled)
RESOURCE_TYPE_KEY = "tfimport.resource_type"


@dataclass
class ResourceNode:
    id: str
    parent_id: str = ""
    name: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)
    parent: Optional["ResourceNode"] = field(default=None, repr=False, compare=False)

    def child(self, child_id: str, name: str = "") -> "ResourceNode":
        return ResourceNode(id=child_id, parent_id=self.id, name=name, parent=self)
