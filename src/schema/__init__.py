"""
Screen schema
Node, document and render-tree types shared by producer and consumer.
"""

from .models import (
    Action,
    ButtonNode,
    ComponentNode,
    Condition,
    ContainerNode,
    DividerNode,
    Font,
    GridNode,
    ImageNode,
    INPUT_TYPES,
    ListNode,
    Node,
    NODE_TYPES,
    Operator,
    Padding,
    ProgressNode,
    ScreenContext,
    ScreenDocument,
    SliderNode,
    SpacerNode,
    Style,
    TextFieldNode,
    TextNode,
    ToggleNode,
    UnsupportedNode,
)
from .decode import DocumentDecodeError, decode_condition, decode_document, decode_node
from .render import (
    Diagnostic,
    ReachableAction,
    RenderedScreen,
    RenderNode,
    RenderStatus,
    ResourceDescriptor,
    ResourceState,
)

__all__ = [
    "Action",
    "ButtonNode",
    "ComponentNode",
    "Condition",
    "ContainerNode",
    "DividerNode",
    "Font",
    "GridNode",
    "ImageNode",
    "INPUT_TYPES",
    "ListNode",
    "Node",
    "NODE_TYPES",
    "Operator",
    "Padding",
    "ProgressNode",
    "ScreenContext",
    "ScreenDocument",
    "SliderNode",
    "SpacerNode",
    "Style",
    "TextFieldNode",
    "TextNode",
    "ToggleNode",
    "UnsupportedNode",
    "DocumentDecodeError",
    "decode_condition",
    "decode_document",
    "decode_node",
    "Diagnostic",
    "ReachableAction",
    "RenderedScreen",
    "RenderNode",
    "RenderStatus",
    "ResourceDescriptor",
    "ResourceState",
]
