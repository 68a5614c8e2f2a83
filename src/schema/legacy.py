"""Upgrade of flat, pre-style component fields.

Older clients and templates put styling tokens, action ids and item keys
directly on the node. They are folded into the current shape before
validation. An explicit modern field always wins over its legacy spelling.
"""

from typing import Any

# Flat node-level style tokens and the style field they map to
STYLE_FIELDS = {
    "color": "color",
    "foregroundColor": "color",
    "backgroundColor": "backgroundColor",
    "padding": "padding",
    "spacing": "spacing",
    "cornerRadius": "cornerRadius",
    "width": "width",
    "height": "height",
}


def _lift_style(node: dict[str, Any]) -> None:
    style = node.get("style")
    if style is not None and not isinstance(style, dict):
        return
    style = dict(style or {})
    lifted = False

    for legacy, target in STYLE_FIELDS.items():
        if legacy in node:
            value = node.pop(legacy)
            style.setdefault(target, value)
            lifted = True

    font = node.pop("font", None)
    weight = node.pop("fontWeight", None)
    if font is not None or weight is not None:
        lifted = True
        current = style.get("font")
        if current is None:
            current = {}
        elif isinstance(current, str):
            current = {"name": current}
        if isinstance(current, dict):
            current = dict(current)
            if isinstance(font, str):
                current.setdefault("name", font)
            elif isinstance(font, dict):
                for k, v in font.items():
                    current.setdefault(k, v)
            if weight is not None:
                current.setdefault("weight", weight)
            style["font"] = current

    if lifted:
        node["style"] = style


def upgrade_legacy_fields(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of a raw node with legacy fields translated.

    Args:
        raw: Node object as decoded from JSON

    Returns:
        New dict; the input is never modified
    """
    node = dict(raw)

    _lift_style(node)

    action_id = node.pop("actionId", None)
    destination = node.pop("destination", None)
    if "action" not in node:
        if isinstance(action_id, str) and action_id:
            node["action"] = {"type": "invoke", "target": action_id}
        elif isinstance(destination, str) and destination:
            node["action"] = {"type": "navigate", "target": destination}

    key = node.pop("key", None)
    if isinstance(key, str) and key and "text" not in node:
        node["text"] = "{{item.%s}}" % key

    item_view = node.pop("itemView", None)
    if item_view is not None and "itemTemplate" not in node:
        node["itemTemplate"] = item_view

    if node.get("type") == "image":
        url = node.pop("url", None)
        if url is not None and "imageUrl" not in node:
            node["imageUrl"] = url

    condition_key = node.pop("conditionKey", None)
    if isinstance(condition_key, str) and condition_key:
        conditions = node.get("conditions")
        if conditions is None:
            conditions = []
        if isinstance(conditions, list):
            node["conditions"] = [
                *conditions,
                {"field": condition_key, "operator": "isNotEmpty", "value": ""},
            ]

    return node
