from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

JSONLDContext = Union[str, Dict[str, Any], List[Any]]
JSONLDType = Union[str, List[Any]]

RESERVED_KEYWORDS = frozenset({"@context", "@id", "@type", "@graph"})


class JSONLDNode(BaseModel):
    """A generic JSON-LD object.

    The ``@context``, ``@id``, ``@type`` and ``@graph`` keywords always come
    from the explicit fields below.  Entries with those keys in
    ``properties`` are ignored when the node is encoded.
    """

    context: Optional[JSONLDContext] = None
    """A context IRI, an inline context mapping, or a list of either."""

    id: str = ""
    type: Optional[JSONLDType] = None
    graph: List["JSONLDNode"] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)
