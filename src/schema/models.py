"""Screen Document Models.

Canonical node and document types shared by the template producer and the
interpreter. Nodes are a tagged union keyed by ``type``; decoding is tolerant
(see ``schema.decode``) so a bad node degrades on its own instead of failing
the whole document.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializeAsAny,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .legacy import upgrade_legacy_fields


class SchemaModel(BaseModel):
    """Base for wire models: camelCase on the wire, immutable, forward compatible."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # Unknown fields from newer producers
        frozen=True,
    )


def _to_str(value: Any) -> Any:
    """Stringify JSON scalars the way template authors write them."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


# ============================================================================
# Style
# ============================================================================


class Font(SchemaModel):
    """Font token."""

    name: str | None = None
    size: float | None = None
    weight: str | None = None


class Padding(SchemaModel):
    """Edge insets."""

    top: float = 0.0
    bottom: float = 0.0
    leading: float = 0.0
    trailing: float = 0.0


class Style(SchemaModel):
    """Styling tokens, carried as data and never applied by the interpreter."""

    font: Font | None = None
    color: str | None = None
    background_color: str | None = None
    padding: Padding | None = None
    corner_radius: float | None = None
    width: float | None = None
    height: float | None = None
    spacing: float | None = None

    @field_validator("font", mode="before")
    @classmethod
    def named_font(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"name": v}
        return v

    @field_validator("padding", mode="before")
    @classmethod
    def uniform_padding(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return {"top": v, "bottom": v, "leading": v, "trailing": v}
        return v


# ============================================================================
# Actions and conditions
# ============================================================================


class Action(SchemaModel):
    """Description of a user-triggered effect. Carried, never executed."""

    type: str = Field(min_length=1)
    target: str = ""
    parameters: dict[str, str] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def stringify_parameters(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k): _to_str(val) for k, val in v.items() if val is not None}
        return v


class Operator(str, Enum):
    """Condition operators. Anything unrecognised decodes to UNKNOWN."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    IN = "in"
    GREATER_THAN = "greaterThan"
    GREATER_THAN_OR_EQUAL = "greaterThanOrEqual"
    LESS_THAN = "lessThan"
    LESS_THAN_OR_EQUAL = "lessThanOrEqual"
    EXISTS = "exists"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "Operator":
        return cls.UNKNOWN


class Condition(SchemaModel):
    """Visibility predicate on one environment field."""

    field: str
    operator: Operator = Operator.EQUALS
    value: str = ""

    @field_validator("operator", mode="before")
    @classmethod
    def known_operator(cls, v: Any) -> Any:
        if isinstance(v, Operator):
            return v
        if isinstance(v, str):
            return Operator(v)
        return Operator.UNKNOWN

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, v: Any) -> Any:
        if v is None:
            return ""
        return _to_str(v)

    @classmethod
    def never(cls) -> "Condition":
        """Condition that always fails (stands in for malformed entries)."""
        return cls(field="", operator=Operator.UNKNOWN, value="")


# ============================================================================
# Component nodes
# ============================================================================


class Node(SchemaModel):
    """Any entry of a component tree, valid or not."""

    type: str | None = None
    id: str | None = None


class UnsupportedNode(Node):
    """Placeholder for a node that could not be decoded or has an unknown type."""

    reason: str = "unknown_type"
    detail: str = ""


class ComponentNode(Node):
    """Fields common to every supported component."""

    type: str
    id: str = Field(min_length=1)
    text: str | None = None
    label: str | None = None
    style: Style | None = None
    action: Action | None = None
    conditions: list[Condition] = Field(default_factory=list)
    children: list[SerializeAsAny[Node]] = Field(default_factory=list)
    data_source: str | None = None
    item_template: SerializeAsAny[Node] | None = None

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return upgrade_legacy_fields(data)
        return data

    @field_validator("text", "label", mode="before")
    @classmethod
    def stringify_text(cls, v: Any) -> Any:
        return _to_str(v)

    @field_validator("conditions", mode="before")
    @classmethod
    def tolerant_conditions(cls, v: Any) -> Any:
        """A malformed condition hides the node instead of being ignored."""
        if not isinstance(v, list):
            return v
        from .decode import decode_condition

        return [decode_condition(item) for item in v]

    @field_validator("children", mode="before")
    @classmethod
    def tolerant_children(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        from .decode import decode_node

        return [decode_node(item) for item in v]

    @field_validator("item_template", mode="before")
    @classmethod
    def tolerant_item_template(cls, v: Any) -> Any:
        if v is None:
            return v
        from .decode import decode_node

        return decode_node(v)


class TextNode(ComponentNode):
    type: Literal["text"] = "text"


class ButtonNode(ComponentNode):
    type: Literal["button"] = "button"


class ImageNode(ComponentNode):
    """Local asset (imageName) or remote resource (imageUrl); the name wins."""

    type: Literal["image"] = "image"
    image_url: str | None = None
    image_name: str | None = None


class SpacerNode(ComponentNode):
    type: Literal["spacer"] = "spacer"


class DividerNode(ComponentNode):
    type: Literal["divider"] = "divider"


class ProgressNode(ComponentNode):
    type: Literal["progressView"] = "progressView"
    progress: float | None = Field(default=None, ge=0.0, le=1.0)


class TextFieldNode(ComponentNode):
    type: Literal["textField"] = "textField"
    value_key: str = Field(min_length=1)
    placeholder: str | None = None


class ToggleNode(ComponentNode):
    type: Literal["toggle"] = "toggle"
    value_key: str = Field(min_length=1)


class SliderNode(ComponentNode):
    type: Literal["slider"] = "slider"
    value_key: str = Field(min_length=1)
    min_value: float = 0.0
    max_value: float = 1.0
    step: float = Field(default=0.1, gt=0)


class ContainerNode(ComponentNode):
    """Layout containers; children are evaluated in order."""

    type: Literal["vstack", "hstack", "zstack", "card", "scroll", "section", "conditional"]


class GridNode(ComponentNode):
    type: Literal["grid"] = "grid"
    columns: int = Field(default=2, ge=1)


class ListNode(ComponentNode):
    """Repeats item_template once per record of data_source."""

    type: Literal["list", "forEach"] = "list"


NODE_TYPES: dict[str, type[ComponentNode]] = {
    "text": TextNode,
    "button": ButtonNode,
    "image": ImageNode,
    "spacer": SpacerNode,
    "divider": DividerNode,
    "progressView": ProgressNode,
    "textField": TextFieldNode,
    "toggle": ToggleNode,
    "slider": SliderNode,
    "vstack": ContainerNode,
    "hstack": ContainerNode,
    "zstack": ContainerNode,
    "card": ContainerNode,
    "scroll": ContainerNode,
    "section": ContainerNode,
    "conditional": ContainerNode,
    "grid": GridNode,
    "list": ListNode,
    "forEach": ListNode,
}

INPUT_TYPES = (TextFieldNode, ToggleNode, SliderNode)


# ============================================================================
# Documents and request context
# ============================================================================


class ScreenDocument(SchemaModel):
    """A complete screen template."""

    id: str
    version: int = 1
    title: str = ""
    components: list[SerializeAsAny[Node]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def single_root(cls, data: Any) -> Any:
        """Accept the single-root {version, component} form."""
        if isinstance(data, dict) and "components" not in data and "component" in data:
            data = dict(data)
            data["components"] = [data.pop("component")]
        return data

    @field_validator("components", mode="before")
    @classmethod
    def tolerant_components(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        from .decode import decode_node

        return [decode_node(item) for item in v]


class ScreenContext(SchemaModel):
    """Request parameters used only to select a template."""

    user_id: str | None = None
    route_id: str | None = None
    service_date: datetime | None = None
    device_model: str | None = None
    app_version: str | None = None
    locale: str | None = None

    def template_keys(self, screen_id: str) -> list[str]:
        """Template keys to try, most specific first."""
        if self.locale:
            return [f"{screen_id}.{self.locale}", screen_id]
        return [screen_id]
