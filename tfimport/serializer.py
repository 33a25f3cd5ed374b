"""
HCL writer for imported resource state.

Output is laid out the way ``terraform fmt`` lays it out (two-space indent,
aligned ``=`` for runs of single-line attributes) so the generated text can be
pasted straight into a configuration.
"""
import re
from typing import Any, Dict, List, Tuple

from tfimport.models.schema import Block, ResourceSchema

PLACEHOLDER_NAME = "todo_resource_name"
INDENT = "  "

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_NON_IDENT_RE = re.compile(r"[^A-Za-z0-9_]")

# Fixed leading attributes, in order
_LEADING = ("id", "name", "location", "resource_group_name")


def local_name(state: Dict[str, Any]) -> str:
    name = state.get("name") if isinstance(state, dict) else None
    if not isinstance(name, str) or not name:
        return PLACEHOLDER_NAME
    return _NON_IDENT_RE.sub("_", name)


def attribute_sort_key(name: str) -> Tuple[int, str]:
    """id, name, location, resource_group_name, then *_id/*_ids, then the rest."""
    if name in _LEADING:
        return (_LEADING.index(name), name)
    if name.endswith("_id") or name.endswith("_ids"):
        return (len(_LEADING), name)
    return (len(_LEADING) + 1, name)


def quote(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("${", "$${")
        .replace("%{", "%%{")
    )
    return f'"{escaped}"'


def _key(name: str) -> str:
    return name if _IDENT_RE.match(name) else quote(name)


def render_value(value: Any, depth: int = 1) -> str:
    """Render a state value as an HCL expression."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v, depth) for v in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        pad = INDENT * (depth + 1)
        items = [(_key(str(k)), render_value(value[k], depth + 1)) for k in sorted(value, key=str)]
        return "{\n" + "\n".join(_align(items, pad)) + "\n" + INDENT * depth + "}"
    return quote(str(value))


def _align(items: List[Tuple[str, str]], pad: str) -> List[str]:
    """Align ``=`` across runs of single-line attributes."""
    lines: List[str] = []
    run: List[Tuple[str, str]] = []

    def flush() -> None:
        width = max((len(k) for k, _ in run), default=0)
        lines.extend(f"{pad}{k.ljust(width)} = {v}" for k, v in run)
        run.clear()

    for key, rendered in items:
        if "\n" in rendered:
            flush()
            lines.append(f"{pad}{key} = {rendered}")
        else:
            run.append((key, rendered))
    flush()
    return lines


def _block_elements(mode: str, value: Any) -> List[Dict[str, Any]]:
    """Objects to emit as nested blocks for a state value in nesting ``mode``."""
    if mode == "map" and isinstance(value, dict):
        candidates = [value[k] for k in sorted(value, key=str)]
    elif isinstance(value, dict):
        return [value]
    elif isinstance(value, (list, tuple)):
        candidates = list(value)
    else:
        return []
    # Non-object elements have no block representation and are skipped
    return [v for v in candidates if isinstance(v, dict)]


def _write_body(block: Block, state: Dict[str, Any], depth: int) -> List[str]:
    pad = INDENT * depth
    items = []
    for name in sorted(block.attributes, key=attribute_sort_key):
        if block.attributes[name].settable:
            items.append((name, render_value(state.get(name), depth)))
    lines = _align(items, pad)

    for block_name in sorted(block.block_types):
        nested = block.block_types[block_name]
        for element in _block_elements(nested.nesting_mode, state.get(block_name)):
            lines.append(f"{pad}{block_name} {{")
            lines.extend(_write_body(nested.block, element, depth + 1))
            lines.append(f"{pad}}}")
    return lines


def serialize(resource_type: str, schema: ResourceSchema, state: Dict[str, Any]) -> str:
    """Render one resource block, terminated by a newline."""
    lines = [f'resource "{resource_type}" "{local_name(state)}" {{']
    lines.extend(_write_body(schema.block, state, 1))
    lines.append("}")
    return "\n".join(lines) + "\n"
