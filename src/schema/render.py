"""Render Tree Models - interpreter output."""

from enum import Enum
from typing import Any

from pydantic import Field

from core.hash import hash_string
from core.json import safe_json_dumps
from .models import Action, SchemaModel, Style


class RenderStatus(str, Enum):
    """How a render node came to be."""

    OK = "ok"
    UNSUPPORTED = "unsupported"  # Unknown type or undecodable node
    TRUNCATED = "truncated"  # Depth limit or list cycle


class ResourceState(str, Enum):
    """Load state of a referenced resource."""

    PLACEHOLDER = "placeholder"
    LOADED = "loaded"
    FAILED = "failed"


class ResourceDescriptor(SchemaModel):
    """Reference to an image; remote ones are fetched out of band."""

    url: str | None = None
    name: str | None = None
    state: ResourceState = ResourceState.PLACEHOLDER

    @property
    def is_remote(self) -> bool:
        return self.name is None and bool(self.url)


class RenderNode(SchemaModel):
    """One evaluated node, ready for a platform drawing layer."""

    identity: str
    id: str | None = None
    type: str | None = None
    status: RenderStatus = RenderStatus.OK
    visible: bool = True
    text: str | None = None
    label: str | None = None
    placeholder: str | None = None
    value: Any = None
    style: Style | None = None
    action: Action | None = None
    resource: ResourceDescriptor | None = None
    props: dict[str, Any] = Field(default_factory=dict)
    children: list["RenderNode"] = Field(default_factory=list)
    reason: str | None = None

    def walk(self):
        """Yield this node and all descendants, depth first, in order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, identity: str) -> "RenderNode | None":
        """Find a node by render identity."""
        for node in self.walk():
            if node.identity == identity:
                return node
        return None


class ReachableAction(SchemaModel):
    """An action attached to a visible node."""

    identity: str
    action: Action


class Diagnostic(SchemaModel):
    """A locally recovered anomaly."""

    identity: str
    code: str
    detail: str = ""


class RenderedScreen(SchemaModel):
    """Evaluated screen document."""

    id: str
    version: int
    title: str = ""
    components: list[RenderNode] = Field(default_factory=list)
    actions: list[ReachableAction] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    def walk(self):
        for component in self.components:
            yield from component.walk()

    def find(self, identity: str) -> RenderNode | None:
        for component in self.components:
            found = component.find(identity)
            if found is not None:
                return found
        return None

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def fingerprint(self) -> str:
        """Deterministic digest of the tree (equal trees, equal fingerprints)."""
        return hash_string(safe_json_dumps(self.to_json_dict()), truncate=16)


RenderNode.model_rebuild()
