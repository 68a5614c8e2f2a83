"""Component Tree Interpreter

Evaluates a screen's component tree against an Environment and produces a
render tree. Evaluation is pure: no I/O, no dispatch, no mutation of the
template or the environment. Anomalies in the tree degrade the affected node
only and are reported as diagnostics.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from core import get_logger
from core.json import JSONParseError, decode_json
from schema import (
    Action,
    ComponentNode,
    Diagnostic,
    GridNode,
    ImageNode,
    INPUT_TYPES,
    Node,
    ProgressNode,
    ReachableAction,
    RenderedScreen,
    RenderNode,
    RenderStatus,
    ResourceDescriptor,
    ResourceState,
    ScreenDocument,
    SliderNode,
    TextFieldNode,
    ToggleNode,
    UnsupportedNode,
    decode_node,
)
from .conditions import all_hold
from .dispatch import ActionDispatcher
from .environment import Environment
from .interpolation import interpolate

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 32

# Newest document version this interpreter was written against. Newer
# documents still render; unknown node types degrade individually.
SUPPORTED_VERSION = 5


class EvaluationError(ValueError):
    """The input cannot be evaluated at all (no root or no environment)."""

    pass


@dataclass
class _Pass:
    """Per-pass accumulators."""

    resources: Mapping[str, ResourceState]
    diagnostics: list[Diagnostic] = field(default_factory=list)
    actions: list[ReachableAction] = field(default_factory=list)

    def diagnose(self, identity: str, code: str, detail: str = "") -> None:
        self.diagnostics.append(Diagnostic(identity=identity, code=code, detail=detail))


@dataclass(frozen=True)
class _Scope:
    """Where a node sits: its parent, the enclosing list item and list chain."""

    parent: str | None = None
    item: str | None = None
    sources: tuple[str, ...] = ()


class Interpreter:
    """
    Recursive evaluator for component trees.

    Args:
        dispatcher: Receives actions from interact(); None disables dispatch
        max_depth: Deepest nesting level evaluated (root is level 0)
        coerce_types: Coerce mismatched condition operands instead of
            treating the mismatch as false
    """

    def __init__(
        self,
        dispatcher: ActionDispatcher | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        coerce_types: bool = False,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.dispatcher = dispatcher
        self.max_depth = max_depth
        self.coerce_types = coerce_types

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(
        self,
        node: Node | dict[str, Any] | None,
        environment: Environment | Mapping[str, Any] | None,
        resources: Mapping[str, ResourceState] | None = None,
    ) -> RenderNode:
        """Evaluate a single subtree."""
        root = self._check_root(node)
        env = self._check_environment(environment)
        state = _Pass(resources=resources or {})
        rendered = self._evaluate(root, env, state, _Scope(), position=0, depth=0)
        self._report(state)
        return rendered

    def render(
        self,
        document: ScreenDocument,
        environment: Environment | Mapping[str, Any] | None,
        resources: Mapping[str, ResourceState] | None = None,
    ) -> RenderedScreen:
        """
        Evaluate every component of a screen document.

        Args:
            document: Decoded screen
            environment: Bindings for this pass
            resources: Known load state per remote resource URL

        Returns:
            The rendered screen with its reachable actions and diagnostics
        """
        if not isinstance(document, ScreenDocument):
            raise EvaluationError(f"expected a ScreenDocument, got {type(document).__name__}")
        env = self._check_environment(environment)

        if document.version > SUPPORTED_VERSION:
            logger.info("document_version_newer", screen_id=document.id, version=document.version)

        state = _Pass(resources=resources or {})
        components = [
            self._evaluate(component, env, state, _Scope(), position=i, depth=0)
            for i, component in enumerate(document.components)
        ]
        self._report(state, screen_id=document.id)

        return RenderedScreen(
            id=document.id,
            version=document.version,
            title=interpolate(document.title, env),
            components=components,
            actions=state.actions,
            diagnostics=state.diagnostics,
        )

    def interact(self, screen: RenderedScreen, identity: str) -> Action:
        """
        Trigger the action of a rendered node.

        Returns:
            The dispatched action

        Raises:
            EvaluationError: No visible node with that identity, or it has no action
        """
        node = screen.find(identity)
        if node is None or not node.visible:
            raise EvaluationError(f"no visible node with identity '{identity}'")
        if node.action is None:
            raise EvaluationError(f"node '{identity}' has no action")

        if self.dispatcher is not None:
            self.dispatcher.dispatch(node.action)
        logger.info("interaction", identity=identity, action_type=node.action.type, target=node.action.target)
        return node.action

    # ------------------------------------------------------------------
    # Input checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_root(node: Any) -> Node:
        if node is None:
            raise EvaluationError("root node is required")
        if isinstance(node, Node):
            return node
        if isinstance(node, dict):
            return decode_node(node)
        raise EvaluationError(f"root must be a component node, got {type(node).__name__}")

    @staticmethod
    def _check_environment(environment: Any) -> Environment:
        try:
            return Environment.of(environment)
        except TypeError as e:
            raise EvaluationError(str(e)) from e

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    @staticmethod
    def _identity(node: Node, scope: _Scope, position: int) -> str:
        if node.id:
            return f"{scope.item}/{node.id}" if scope.item else node.id
        if scope.parent:
            return f"{scope.parent}/{position}"
        return f"@{position}"

    def _evaluate(
        self,
        node: Node,
        env: Environment,
        state: _Pass,
        scope: _Scope,
        position: int,
        depth: int,
        identity: str | None = None,
    ) -> RenderNode:
        identity = identity or self._identity(node, scope, position)

        if depth > self.max_depth:
            state.diagnose(identity, "max_depth", f"nesting deeper than {self.max_depth}")
            return RenderNode(
                identity=identity,
                id=node.id,
                type=node.type,
                status=RenderStatus.TRUNCATED,
                reason="max_depth",
            )

        if not isinstance(node, ComponentNode):
            reason = node.reason if isinstance(node, UnsupportedNode) else "unknown_type"
            detail = node.detail if isinstance(node, UnsupportedNode) else ""
            state.diagnose(identity, reason, detail or f"type={node.type!r}")
            return RenderNode(
                identity=identity,
                id=node.id,
                type=node.type,
                status=RenderStatus.UNSUPPORTED,
                reason=reason,
            )

        if not all_hold(node.conditions, env, self.coerce_types):
            return RenderNode(identity=identity, id=node.id, type=node.type, visible=False)

        if node.data_source:
            chain = self._source_chain(node.data_source, scope)
            if chain in scope.sources:
                state.diagnose(identity, "cycle", f"dataSource {node.data_source!r} repeats an enclosing list")
                return RenderNode(
                    identity=identity,
                    id=node.id,
                    type=node.type,
                    status=RenderStatus.TRUNCATED,
                    reason="cycle",
                )

        missing: list[str] = []

        def bind(text: str | None) -> str | None:
            if text is None:
                return None
            return interpolate(text, env, on_missing=missing.append)

        action = self._package_action(node.action, bind)
        if action is not None:
            state.actions.append(ReachableAction(identity=identity, action=action))

        child_scope = _Scope(parent=identity, item=scope.item, sources=scope.sources)
        children = [
            self._evaluate(child, env, state, child_scope, position=i, depth=depth + 1)
            for i, child in enumerate(node.children)
        ]
        if node.data_source:
            children.extend(self._expand(node, env, state, scope, identity, depth))

        rendered = RenderNode(
            identity=identity,
            id=node.id,
            type=node.type,
            text=bind(node.text),
            label=bind(node.label),
            placeholder=bind(node.placeholder) if isinstance(node, TextFieldNode) else None,
            value=self._input_value(node, env),
            style=node.style,
            action=action,
            resource=self._resource(node, bind, state),
            props=self._props(node),
            children=children,
        )

        for key in missing:
            state.diagnose(identity, "missing_binding", key)
        return rendered

    @staticmethod
    def _source_chain(data_source: str, scope: _Scope) -> str:
        """Absolute key of a list's data source ("item.x" is relative to the enclosing list)."""
        if scope.sources and (data_source == "item" or data_source.startswith("item.")):
            return f"{scope.sources[-1]}[]{data_source[len('item'):]}"
        return data_source

    def _items(self, node: ComponentNode, env: Environment, state: _Pass, identity: str) -> list[Any]:
        found, value = env.lookup(node.data_source or "")
        if not found or value is None:
            return []

        if isinstance(value, str):
            try:
                value = decode_json(value)
            except JSONParseError:
                state.diagnose(identity, "invalid_data_source", "string is not a JSON array")
                return []

        if not isinstance(value, (list, tuple)):
            state.diagnose(identity, "invalid_data_source", f"expected a list, got {type(value).__name__}")
            return []
        return list(value)

    def _expand(
        self,
        node: ComponentNode,
        env: Environment,
        state: _Pass,
        scope: _Scope,
        identity: str,
        depth: int,
    ) -> list[RenderNode]:
        items = self._items(node, env, state, identity)
        if not items:
            return []

        template = node.item_template
        if template is None:
            state.diagnose(identity, "missing_item_template", f"{len(items)} items not rendered")
            return []

        sources = (*scope.sources, self._source_chain(node.data_source or "", scope))
        expanded = []
        for i, item in enumerate(items):
            item_identity = f"{identity}#{i}"
            item_scope = _Scope(parent=item_identity, item=item_identity, sources=sources)
            expanded.append(
                self._evaluate(
                    template,
                    env.with_item(item, i),
                    state,
                    item_scope,
                    position=i,
                    depth=depth + 1,
                    identity=item_identity,
                )
            )
        return expanded

    @staticmethod
    def _package_action(action: Action | None, bind) -> Action | None:
        if action is None:
            return None
        if not action.parameters:
            return action
        return action.model_copy(
            update={"parameters": {key: bind(value) for key, value in action.parameters.items()}}
        )

    @staticmethod
    def _input_value(node: ComponentNode, env: Environment) -> Any:
        if isinstance(node, INPUT_TYPES):
            return env.get(node.value_key)
        return None

    @staticmethod
    def _resource(node: ComponentNode, bind, state: _Pass) -> ResourceDescriptor | None:
        if not isinstance(node, ImageNode):
            return None
        if node.image_name:
            return ResourceDescriptor(name=node.image_name, state=ResourceState.LOADED)
        if node.image_url:
            url = bind(node.image_url)
            return ResourceDescriptor(url=url, state=state.resources.get(url, ResourceState.PLACEHOLDER))
        return None

    @staticmethod
    def _props(node: ComponentNode) -> dict[str, Any]:
        if isinstance(node, SliderNode):
            return {
                "valueKey": node.value_key,
                "minValue": node.min_value,
                "maxValue": node.max_value,
                "step": node.step,
            }
        if isinstance(node, (TextFieldNode, ToggleNode)):
            return {"valueKey": node.value_key}
        if isinstance(node, ProgressNode) and node.progress is not None:
            return {"progress": node.progress}
        if isinstance(node, GridNode):
            return {"columns": node.columns}
        return {}

    @staticmethod
    def _report(state: _Pass, screen_id: str | None = None) -> None:
        for diagnostic in state.diagnostics:
            if diagnostic.code == "missing_binding":
                logger.debug("binding_missing", screen_id=screen_id, identity=diagnostic.identity, key=diagnostic.detail)
            else:
                logger.warning(
                    "node_degraded",
                    screen_id=screen_id,
                    identity=diagnostic.identity,
                    code=diagnostic.code,
                    detail=diagnostic.detail,
                )
