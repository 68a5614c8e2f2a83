"""Action dispatchers.

A dispatcher receives the Action descriptors produced by user interaction.
Dispatch is fire-and-forget: failures are logged and counted, never raised
back into the interpreter.
"""

from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol

import httpx
import pybreaker

from core import get_logger
from monitoring import MetricsCollector, metrics_collector
from schema import Action

logger = get_logger(__name__)


class ActionDispatcher(Protocol):
    """Receives actions emitted by interaction with a rendered node."""

    def dispatch(self, action: Action) -> None:
        ...


class LoggingActionDispatcher:
    """Logs and remembers the most recent actions."""

    def __init__(self, history: int = 100, metrics: MetricsCollector | None = None) -> None:
        self.dispatched: deque[Action] = deque(maxlen=history)
        self.metrics = metrics or metrics_collector

    def dispatch(self, action: Action) -> None:
        self.dispatched.append(action)
        self.metrics.record_action(action.type, "logged")
        logger.info(
            "action_dispatched",
            action_type=action.type,
            target=action.target,
            parameters=action.parameters,
        )


class HttpActionDispatcher:
    """
    Posts actions as JSON to a backend endpoint with circuit breaker
    protection. Requests run on a small worker pool so dispatch never blocks
    the caller.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
        max_workers: int = 4,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize dispatcher with circuit breaker.

        Args:
            url: Endpoint receiving action JSON
            timeout: Request timeout in seconds
            client: Optional preconfigured client
            max_workers: Concurrent in-flight dispatches
        """
        self.url = url
        self.timeout = timeout
        self.metrics = metrics or metrics_collector
        self._client = client or httpx.Client(timeout=timeout)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="action-dispatch")

        class BreakerListener(pybreaker.CircuitBreakerListener):
            """Listener for circuit breaker state changes."""

            def state_change(self, cb, old_state, new_state):
                """Called when circuit breaker state changes."""
                logger.warning(
                    "breaker_state_change",
                    breaker=cb.name,
                    from_state=str(old_state),
                    to_state=str(new_state),
                )

        self._breaker = pybreaker.CircuitBreaker(
            fail_max=5,
            reset_timeout=30,
            name="action-dispatch-http",
            listeners=[BreakerListener()],
        )

        logger.info("dispatcher_init", url=self.url)

    def dispatch(self, action: Action) -> Future[None]:
        """Queue an action for delivery. The returned future never raises."""
        return self._executor.submit(self._send, action)

    def _post(self, payload: dict) -> httpx.Response:
        response = self._client.post(self.url, json=payload)
        response.raise_for_status()
        return response

    def _send(self, action: Action) -> None:
        payload = action.model_dump(mode="json", by_alias=True)
        try:
            response = self._breaker.call(self._post, payload)
        except pybreaker.CircuitBreakerError:
            self.metrics.record_action(action.type, "rejected")
            logger.warning("action_dispatch_rejected", action_type=action.type, target=action.target)
            return
        except httpx.HTTPError as e:
            self.metrics.record_action(action.type, "failed")
            logger.error("action_dispatch_failed", action_type=action.type, target=action.target, error=str(e))
            return

        self.metrics.record_action(action.type, "delivered")
        logger.info(
            "action_dispatched",
            action_type=action.type,
            target=action.target,
            status=response.status_code,
        )

    def close(self) -> None:
        """Wait for queued dispatches and close the HTTP client."""
        self._executor.shutdown(wait=True)
        self._client.close()
