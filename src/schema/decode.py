"""Tolerant decoding of screen templates.

Rules:
- unknown extra fields are ignored
- an optional field that fails validation is dropped and the node is
  validated again with its default
- a node whose type is unknown, or whose required fields are missing or
  invalid, becomes an UnsupportedNode; its siblings and parent are unaffected
- a malformed condition becomes a condition that never holds
"""

from typing import Any

from pydantic import BaseModel, ValidationError as PydanticValidationError

from core import get_logger
from .legacy import upgrade_legacy_fields
from .models import NODE_TYPES, Condition, Node, ScreenDocument, UnsupportedNode

logger = get_logger(__name__)


class DocumentDecodeError(ValueError):
    """The template is not a JSON object and cannot be decoded at all."""

    pass


def _summarize(error: PydanticValidationError) -> str:
    parts = []
    for err in error.errors()[:3]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<node>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def _field_keys(model: type[BaseModel]) -> tuple[dict[str, str], set[str]]:
    """Map of field name -> alias, and the names+aliases of required fields."""
    aliases: dict[str, str] = {}
    required: set[str] = set()
    for name, info in model.model_fields.items():
        alias = info.alias or name
        aliases[name] = alias
        if info.is_required():
            required.update({name, alias})
    return aliases, required


def validate_tolerant(model: type[BaseModel], data: dict[str, Any]) -> tuple[BaseModel | None, str]:
    """
    Validate data against model, dropping optional fields that fail.

    Returns:
        (instance, "") on success, (None, detail) when a required field fails
    """
    aliases, required = _field_keys(model)

    while True:
        try:
            return model.model_validate(data), ""
        except PydanticValidationError as e:
            locs = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
            offending = {k for k in data if k in locs or aliases.get(k) in locs}

            if not offending or offending & required:
                return None, _summarize(e)

            logger.debug("optional_fields_dropped", model=model.__name__, fields=sorted(offending))
            data = {k: v for k, v in data.items() if k not in offending}


def decode_condition(raw: Any) -> Condition:
    """Decode one condition; malformed entries never hold."""
    if isinstance(raw, Condition):
        return raw
    try:
        return Condition.model_validate(raw)
    except PydanticValidationError as e:
        logger.debug("condition_invalid", detail=_summarize(e))
        return Condition.never()


def decode_node(raw: Any) -> Node:
    """
    Decode one component node (and, through validators, its subtree).

    Never raises for bad input: the result is an UnsupportedNode instead.
    """
    if isinstance(raw, Node):
        return raw

    if not isinstance(raw, dict):
        return UnsupportedNode(reason="invalid_node", detail=f"expected object, got {type(raw).__name__}")

    data = upgrade_legacy_fields(raw)
    node_id = data.get("id") if isinstance(data.get("id"), str) and data.get("id") else None
    node_type = data.get("type")

    if not isinstance(node_type, str) or not node_type:
        logger.debug("node_missing_type", node_id=node_id)
        return UnsupportedNode(id=node_id, reason="invalid_node", detail="missing type")

    model = NODE_TYPES.get(node_type)
    if model is None:
        logger.debug("node_unknown_type", node_id=node_id, node_type=node_type)
        return UnsupportedNode(id=node_id, type=node_type, reason="unknown_type")

    node, detail = validate_tolerant(model, data)
    if node is None:
        logger.debug("node_invalid", node_id=node_id, node_type=node_type, detail=detail)
        return UnsupportedNode(id=node_id, type=node_type, reason="invalid_node", detail=detail)
    return node  # type: ignore[return-value]


def decode_document(raw: Any, fallback_id: str) -> ScreenDocument:
    """
    Decode a screen template.

    Args:
        raw: Decoded JSON template
        fallback_id: Screen id used when the template does not carry one

    Raises:
        DocumentDecodeError: If raw is not a JSON object
    """
    if not isinstance(raw, dict):
        raise DocumentDecodeError(f"Template must be an object, got {type(raw).__name__}")

    data = dict(raw)
    if not isinstance(data.get("id"), str) or not data["id"]:
        data["id"] = fallback_id

    document, detail = validate_tolerant(ScreenDocument, data)
    if document is None:
        raise DocumentDecodeError(detail)
    return document  # type: ignore[return-value]
