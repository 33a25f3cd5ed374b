"""
Provider resource schemas, in the shape ``terraform providers schema -json``
reports them.
"""
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class Attribute:
    computed: bool = False
    optional: bool = False
    required: bool = False
    sensitive: bool = False

    @property
    def settable(self) -> bool:
        """False for read-only attributes (computed and not optional)."""
        return not self.computed or self.optional


@dataclass(frozen=True)
class Block:
    attributes: Dict[str, Attribute] = field(default_factory=dict)
    block_types: Dict[str, "NestedBlock"] = field(default_factory=dict)


@dataclass(frozen=True)
class NestedBlock:
    nesting_mode: str = "list"   # "single", "group", "list", "set", "map"
    block: Block = field(default_factory=Block)
    min_items: int = 0
    max_items: int = 0


@dataclass(frozen=True)
class ResourceSchema:
    block: Block
    version: int = 0


def _block_from_json(data: Dict[str, Any]) -> Block:
    attributes = {
        name: Attribute(
            computed=bool(a.get("computed")),
            optional=bool(a.get("optional")),
            required=bool(a.get("required")),
            sensitive=bool(a.get("sensitive")),
        )
        for name, a in (data.get("attributes") or {}).items()
    }
    block_types = {
        name: NestedBlock(
            nesting_mode=b.get("nesting_mode", "list"),
            block=_block_from_json(b.get("block") or {}),
            min_items=int(b.get("min_items") or 0),
            max_items=int(b.get("max_items") or 0),
        )
        for name, b in (data.get("block_types") or {}).items()
    }
    return Block(attributes=attributes, block_types=block_types)


def schema_from_json(data: Dict[str, Any]) -> ResourceSchema:
    return ResourceSchema(block=_block_from_json(data.get("block") or {}), version=int(data.get("version") or 0))
