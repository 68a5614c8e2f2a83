"""Screen Handler."""

from typing import Any, Mapping

from core import ScreenRequest, get_logger
from interpreter import EnvironmentProvider, Interpreter
from monitoring import MetricsCollector, metrics_collector, trace_operation
from schema import Action, RenderedScreen, ScreenContext, ScreenDocument
from screens import ResolutionError, ScreenService

logger = get_logger(__name__)


def to_context(request: ScreenRequest) -> ScreenContext:
    """Template selection context of a validated request."""
    return ScreenContext.model_validate(request.model_dump(exclude={"screen_id"}))


class ScreenHandler:
    """Handles screen fetch, render and interaction requests."""

    def __init__(
        self,
        service: ScreenService,
        interpreter: Interpreter,
        environment_provider: EnvironmentProvider,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.service = service
        self.interpreter = interpreter
        self.environment_provider = environment_provider
        self.metrics = metrics or metrics_collector

    def _resolve(self, request: ScreenRequest, endpoint: str) -> ScreenDocument:
        try:
            return self.service.resolve(request.screen_id, to_context(request))
        except ResolutionError as e:
            self.metrics.record_screen_request(endpoint, e.code)
            if e.status_code >= 500:
                self.metrics.record_error(e.code, "screen_handler")
            raise

    def fetch(self, request: ScreenRequest) -> ScreenDocument:
        """Resolve the screen document without binding any values."""
        logger.info("screen_fetch", screen_id=request.screen_id, user_id=request.user_id, locale=request.locale)
        document = self._resolve(request, "fetch")
        self.metrics.record_screen_request("fetch", "success")
        return document

    def render(self, request: ScreenRequest, environment: Mapping[str, Any] | None = None) -> RenderedScreen:
        """
        Resolve and evaluate a screen.

        Args:
            request: Validated request
            environment: Caller bindings layered over the provider's

        Returns:
            Rendered screen
        """
        logger.info("screen_render", screen_id=request.screen_id, user_id=request.user_id)
        document = self._resolve(request, "render")

        env = self.environment_provider.provide(to_context(request))
        if environment:
            env = env.overlay(environment)

        with trace_operation("render_screen", screen_id=request.screen_id):
            with self.metrics.measure_duration(self.metrics.record_render):
                screen = self.interpreter.render(document, env)

        degraded = [d.code for d in screen.diagnostics if d.code != "missing_binding"]
        if degraded:
            self.metrics.record_degraded(degraded)
        self.metrics.record_screen_request("render", "success")
        return screen

    def interact(
        self,
        request: ScreenRequest,
        identity: str,
        environment: Mapping[str, Any] | None = None,
    ) -> Action:
        """Render the screen for the caller's environment and trigger one node's action."""
        screen = self.render(request, environment)
        action = self.interpreter.interact(screen, identity)
        self.metrics.record_screen_request("interact", "success")
        return action
