"""Render Session

Orders render passes for one screen on the client side. Environment
updates carry a logical timestamp; only a strictly newer update produces a
new pass (last-writer-wins by timestamp, not by arrival or completion
order). Remote resources requested by a pass are fetched in the background
and trigger a re-render of that same pass when they arrive.
"""

from typing import Any, Callable, Mapping

from core import get_logger, new_session_id
from resources import ResourceLoader, ResourceResult
from schema import Action, RenderedScreen, ResourceState, ScreenDocument
from .environment import Environment
from .evaluator import Interpreter

logger = get_logger(__name__)


class RenderSession:
    """
    Holds the current render of a screen document.

    Args:
        interpreter: Evaluator for passes
        document: Screen being rendered
        loader: Fetches remote resources; None renders placeholders only
        on_render: Called with every new render (initial or resource update)
    """

    def __init__(
        self,
        interpreter: Interpreter,
        document: ScreenDocument,
        loader: ResourceLoader | None = None,
        on_render: Callable[[RenderedScreen], None] | None = None,
    ) -> None:
        self.interpreter = interpreter
        self.document = document
        self.loader = loader
        self.on_render = on_render
        self.session_id = new_session_id()

        self._generation = 0
        self._timestamp: int | None = None
        self._environment: Environment | None = None
        self._screen: RenderedScreen | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def screen(self) -> RenderedScreen | None:
        """Latest render, if any."""
        return self._screen

    def update(self, environment: Environment | Mapping[str, Any], timestamp: int) -> RenderedScreen | None:
        """
        Apply an environment update.

        Args:
            environment: Bindings for the new pass
            timestamp: Logical timestamp of the update

        Returns:
            The new render, or None when the update is stale
        """
        if self._timestamp is not None and timestamp <= self._timestamp:
            logger.debug(
                "render_update_stale",
                session_id=self.session_id,
                timestamp=timestamp,
                current=self._timestamp,
            )
            return None

        self._timestamp = timestamp
        self._generation += 1
        self._environment = Environment.of(environment)

        screen = self._render()

        if self.loader is not None:
            self.loader.cancel_before(self._generation)
            # Failed URLs get another attempt on each newer pass
            urls = [
                node.resource.url
                for node in screen.walk()
                if node.resource is not None
                and node.resource.is_remote
                and node.resource.state is not ResourceState.LOADED
            ]
            if urls:
                self.loader.request(urls, self._generation, self._resource_ready)

        return screen

    def interact(self, identity: str) -> Action:
        """Trigger the action of a node in the latest render."""
        if self._screen is None:
            raise RuntimeError("nothing rendered yet")
        return self.interpreter.interact(self._screen, identity)

    def _render(self) -> RenderedScreen:
        resources = self.loader.states() if self.loader is not None else None
        screen = self.interpreter.render(self.document, self._environment, resources=resources)
        self._screen = screen
        if self.on_render is not None:
            self.on_render(screen)
        return screen

    def _resource_ready(self, generation: int, result: ResourceResult) -> None:
        if generation != self._generation:
            logger.debug(
                "resource_result_stale",
                session_id=self.session_id,
                url=result.url,
                generation=generation,
                current=self._generation,
            )
            return
        logger.debug(
            "resource_ready",
            session_id=self.session_id,
            url=result.url,
            state=result.state.value,
            generation=generation,
        )
        self._render()
