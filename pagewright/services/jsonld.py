"""JSON-LD encoding for :class:`~pagewright.models.jsonld.JSONLDNode`.

A node is flattened into a single JSON object: the free-form ``properties``
come first, then the reserved keywords are added from the node's explicit
fields when they carry a value.

Omission rules
--------------
``@context``
    Dropped when absent or the empty string.  Inline mappings and lists are
    always kept, even when empty.

``@id``
    Dropped when empty.

``@type``
    Dropped when absent, the empty string, or an empty list.

``@graph``
    Dropped when there are no child nodes.  Children are encoded recursively.
"""

import json
from typing import Any, Dict, Mapping

from pagewright.models.jsonld import RESERVED_KEYWORDS, JSONLDNode


def encode(node: JSONLDNode) -> Dict[str, Any]:
    """Return *node* as a JSON-compatible ``dict``."""
    out: Dict[str, Any] = {
        key: _encode_value(value)
        for key, value in node.properties.items()
        if key not in RESERVED_KEYWORDS
    }

    if _has_context(node):
        out["@context"] = _encode_value(node.context)

    if node.id:
        out["@id"] = node.id

    if _has_type(node):
        out["@type"] = _encode_value(node.type)

    if node.graph:
        out["@graph"] = [encode(child) for child in node.graph]

    return out


def dumps(node: JSONLDNode, **kwargs: Any) -> str:
    """Serialize *node* to JSON text.  Extra keyword arguments go to :func:`json.dumps`."""
    return json.dumps(encode(node), **kwargs)


def decode(data: Mapping[str, Any]) -> JSONLDNode:
    """Build a :class:`JSONLDNode` from a parsed JSON-LD object.

    Reserved keywords are lifted into the node's explicit fields and nested
    ``@graph`` entries are decoded recursively; every other key ends up in
    ``properties``.  A ``@graph`` holding a single node object is treated as a
    one-element graph.
    """
    graph = data.get("@graph") or []
    if isinstance(graph, Mapping):
        graph = [graph]
    return JSONLDNode(
        context=data.get("@context"),
        id=data.get("@id") or "",
        type=data.get("@type"),
        graph=[decode(child) for child in graph],
        properties={k: v for k, v in data.items() if k not in RESERVED_KEYWORDS},
    )


def _has_context(node: JSONLDNode) -> bool:
    if node.context is None:
        return False
    if isinstance(node.context, str):
        return node.context != ""
    return True


def _has_type(node: JSONLDNode) -> bool:
    if node.type is None:
        return False
    if isinstance(node.type, (str, list)):
        return len(node.type) > 0
    return True


def _encode_value(value: Any) -> Any:
    # Typed nodes may be nested inside a property bag (e.g. an "author" Person).
    if isinstance(value, JSONLDNode):
        return encode(value)
    if isinstance(value, list):
        return [_encode_value(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode_value(item) for key, item in value.items()}
    return value
