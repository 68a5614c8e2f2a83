"""Tests for screen document models and tolerant decoding."""

import pytest

from schema import (
    Action,
    ButtonNode,
    Condition,
    ContainerNode,
    DocumentDecodeError,
    ImageNode,
    ListNode,
    Operator,
    RenderedScreen,
    RenderNode,
    ScreenContext,
    SliderNode,
    TextNode,
    UnsupportedNode,
    decode_condition,
    decode_document,
    decode_node,
)
from schema.legacy import upgrade_legacy_fields


@pytest.mark.unit
class TestDecodeNode:
    """Node decoding."""

    def test_text_node(self):
        node = decode_node({"id": "title", "type": "text", "text": "Hello"})
        assert isinstance(node, TextNode)
        assert node.text == "Hello"

    def test_camel_case_fields(self):
        node = decode_node({"id": "jobs", "type": "list", "dataSource": "jobs", "itemTemplate": {"id": "t", "type": "text"}})
        assert isinstance(node, ListNode)
        assert node.data_source == "jobs"
        assert isinstance(node.item_template, TextNode)

    def test_unknown_fields_ignored(self):
        node = decode_node({"id": "a", "type": "text", "sparkle": True, "future": {"x": 1}})
        assert isinstance(node, TextNode)

    def test_unknown_type(self):
        node = decode_node({"id": "chart-1", "type": "chart3d"})
        assert isinstance(node, UnsupportedNode)
        assert node.id == "chart-1"
        assert node.type == "chart3d"
        assert node.reason == "unknown_type"

    def test_missing_type(self):
        node = decode_node({"id": "x"})
        assert isinstance(node, UnsupportedNode)
        assert node.reason == "invalid_node"

    def test_missing_id(self):
        node = decode_node({"type": "text", "text": "no id"})
        assert isinstance(node, UnsupportedNode)
        assert node.reason == "invalid_node"
        assert node.type == "text"

    def test_not_an_object(self):
        node = decode_node(["not", "a", "node"])
        assert isinstance(node, UnsupportedNode)
        assert node.reason == "invalid_node"

    def test_missing_required_variant_field(self):
        node = decode_node({"id": "name", "type": "textField"})
        assert isinstance(node, UnsupportedNode)
        assert node.id == "name"

    def test_invalid_optional_field_dropped(self):
        """A bad optional field falls back to its default."""
        node = decode_node({"id": "vol", "type": "slider", "valueKey": "volume", "step": -1, "minValue": "low"})
        assert isinstance(node, SliderNode)
        assert node.step == 0.1
        assert node.min_value == 0.0

    def test_bad_child_isolated(self):
        node = decode_node(
            {
                "id": "root",
                "type": "vstack",
                "children": [
                    {"id": "ok", "type": "text", "text": "fine"},
                    {"id": "bad", "type": "hologram"},
                    42,
                ],
            }
        )
        assert isinstance(node, ContainerNode)
        assert isinstance(node.children[0], TextNode)
        assert isinstance(node.children[1], UnsupportedNode)
        assert isinstance(node.children[2], UnsupportedNode)

    def test_scalar_text_stringified(self):
        node = decode_node({"id": "n", "type": "text", "text": 42})
        assert node.text == "42"

    def test_style_shorthands(self):
        node = decode_node({"id": "n", "type": "text", "style": {"font": "headline", "padding": 8}})
        assert node.style.font.name == "headline"
        assert node.style.padding.top == 8
        assert node.style.padding.trailing == 8


@pytest.mark.unit
class TestConditions:
    """Condition decoding."""

    def test_known_operator(self):
        condition = decode_condition({"field": "user.role", "operator": "equals", "value": "admin"})
        assert condition.operator is Operator.EQUALS

    def test_unknown_operator(self):
        condition = decode_condition({"field": "user.role", "operator": "matchesRegex", "value": ".*"})
        assert condition.operator is Operator.UNKNOWN

    def test_value_stringified(self):
        assert decode_condition({"field": "n", "operator": "greaterThan", "value": 3}).value == "3"
        assert decode_condition({"field": "b", "operator": "equals", "value": True}).value == "true"

    def test_malformed_condition_never_holds(self):
        condition = decode_condition({"operator": "equals"})
        assert condition == Condition.never()

    def test_malformed_condition_kept_on_node(self):
        """A broken condition hides the node rather than disappearing."""
        node = decode_node({"id": "n", "type": "text", "conditions": [{"nope": 1}]})
        assert len(node.conditions) == 1
        assert node.conditions[0].operator is Operator.UNKNOWN


@pytest.mark.unit
class TestLegacyUpgrade:
    """Flat legacy fields."""

    def test_style_lifted(self):
        upgraded = upgrade_legacy_fields({"type": "text", "font": "caption", "fontWeight": "bold", "color": "secondary"})
        assert "font" not in upgraded
        assert upgraded["style"] == {"color": "secondary", "font": {"name": "caption", "weight": "bold"}}

    def test_explicit_style_wins(self):
        upgraded = upgrade_legacy_fields({"type": "text", "color": "red", "style": {"color": "blue"}})
        assert upgraded["style"]["color"] == "blue"

    def test_action_id(self):
        upgraded = upgrade_legacy_fields({"type": "button", "actionId": "startJob"})
        assert upgraded["action"] == {"type": "invoke", "target": "startJob"}

    def test_destination(self):
        upgraded = upgrade_legacy_fields({"type": "button", "destination": "settings"})
        assert upgraded["action"] == {"type": "navigate", "target": "settings"}

    def test_key_binding(self):
        upgraded = upgrade_legacy_fields({"type": "text", "key": "customerName"})
        assert upgraded["text"] == "{{item.customerName}}"

    def test_item_view_and_url(self):
        upgraded = upgrade_legacy_fields({"type": "list", "itemView": {"type": "text"}})
        assert upgraded["itemTemplate"] == {"type": "text"}

        image = upgrade_legacy_fields({"type": "image", "url": "https://cdn.example.com/a.png"})
        assert image["imageUrl"] == "https://cdn.example.com/a.png"

    def test_condition_key(self):
        upgraded = upgrade_legacy_fields({"type": "conditional", "conditionKey": "route.hasCustomerAlerts"})
        assert upgraded["conditions"] == [
            {"field": "route.hasCustomerAlerts", "operator": "isNotEmpty", "value": ""}
        ]

    def test_idempotent(self):
        raw = {"type": "conditional", "conditionKey": "a", "font": "body", "key": "k", "actionId": "go"}
        once = upgrade_legacy_fields(raw)
        assert upgrade_legacy_fields(once) == once
        assert "conditionKey" in raw  # input untouched

    def test_legacy_node_decodes(self):
        node = decode_node({"id": "b", "type": "button", "label": "Start", "actionId": "startJob", "font": "body"})
        assert isinstance(node, ButtonNode)
        assert node.action == Action(type="invoke", target="startJob")
        assert node.style.font.name == "body"

    def test_legacy_image(self):
        node = decode_node({"id": "logo", "type": "image", "url": "https://cdn.example.com/logo.png"})
        assert isinstance(node, ImageNode)
        assert node.image_url == "https://cdn.example.com/logo.png"


@pytest.mark.unit
class TestDocuments:
    """Document decoding."""

    def test_components(self):
        document = decode_document({"id": "home", "version": 2, "components": [{"id": "a", "type": "text"}]}, "home")
        assert document.version == 2
        assert len(document.components) == 1

    def test_single_root(self):
        document = decode_document({"version": 5, "component": {"id": "root", "type": "scroll"}}, "dashboard")
        assert document.id == "dashboard"
        assert document.components[0].id == "root"

    def test_unknown_version_kept(self):
        document = decode_document({"id": "x", "version": 99, "components": []}, "x")
        assert document.version == 99

    def test_not_an_object(self):
        with pytest.raises(DocumentDecodeError):
            decode_document([], "x")

    def test_serialization_keeps_variant_fields(self):
        document = decode_document(
            {"id": "x", "components": [{"id": "img", "type": "image", "imageName": "logo"}]}, "x"
        )
        dumped = document.model_dump(mode="json", by_alias=True, exclude_none=True)
        assert dumped["components"][0]["imageName"] == "logo"


@pytest.mark.unit
class TestContextAndRender:
    """Request context and render models."""

    def test_template_keys(self):
        assert ScreenContext().template_keys("home") == ["home"]
        assert ScreenContext(locale="es-MX").template_keys("home") == ["home.es-MX", "home"]

    def test_render_tree_walk_and_find(self):
        tree = RenderNode(
            identity="root",
            children=[RenderNode(identity="a"), RenderNode(identity="b", children=[RenderNode(identity="b/0")])],
        )
        assert [n.identity for n in tree.walk()] == ["root", "a", "b", "b/0"]
        assert tree.find("b/0").identity == "b/0"
        assert tree.find("missing") is None

    def test_fingerprint_stable(self):
        first = RenderedScreen(id="s", version=1, components=[RenderNode(identity="a", text="hi")])
        second = RenderedScreen(id="s", version=1, components=[RenderNode(identity="a", text="hi")])
        third = RenderedScreen(id="s", version=1, components=[RenderNode(identity="a", text="bye")])

        assert first.fingerprint() == second.fingerprint()
        assert first.fingerprint() != third.fingerprint()
