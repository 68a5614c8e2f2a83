"""Tests for action dispatchers."""

import json

import httpx
import pytest
import respx

from interpreter import HttpActionDispatcher, LoggingActionDispatcher
from schema import Action

URL = "http://backend.local/actions"


@pytest.fixture
def action():
    return Action(type="invoke", target="startJob", parameters={"jobId": "j1"})


def counter(metrics, action_type, outcome):
    value = metrics.registry.get_sample_value(
        "sdui_actions_dispatched_total", {"type": action_type, "outcome": outcome}
    )
    return value or 0


@pytest.mark.unit
def test_logging_dispatcher(action, metrics):
    """Test logging dispatcher keeps recent actions."""
    dispatcher = LoggingActionDispatcher(history=2, metrics=metrics)
    for _ in range(3):
        dispatcher.dispatch(action)

    assert len(dispatcher.dispatched) == 2
    assert counter(metrics, "invoke", "logged") == 3


@pytest.mark.unit
@respx.mock
def test_http_dispatcher_delivers(action, metrics):
    """Test actions are posted as JSON."""
    route = respx.post(URL).mock(return_value=httpx.Response(202))
    dispatcher = HttpActionDispatcher(URL, metrics=metrics)

    dispatcher.dispatch(action).result(timeout=5)
    dispatcher.close()

    assert route.called
    body = json.loads(route.calls.last.request.content)
    assert body == {"type": "invoke", "target": "startJob", "parameters": {"jobId": "j1"}}
    assert counter(metrics, "invoke", "delivered") == 1


@pytest.mark.unit
@respx.mock
def test_http_dispatcher_failure_not_raised(action, metrics):
    """Test failed deliveries are counted, not raised."""
    respx.post(URL).mock(return_value=httpx.Response(500))
    dispatcher = HttpActionDispatcher(URL, metrics=metrics)

    assert dispatcher.dispatch(action).result(timeout=5) is None
    dispatcher.close()

    assert counter(metrics, "invoke", "failed") == 1


@pytest.mark.unit
@respx.mock
def test_http_dispatcher_breaker_rejects(action, metrics):
    """Test open breaker rejects without calling the backend."""
    route = respx.post(URL).mock(side_effect=httpx.ConnectError("refused"))
    dispatcher = HttpActionDispatcher(URL, max_workers=1, metrics=metrics)

    for _ in range(8):
        dispatcher.dispatch(action).result(timeout=5)
    dispatcher.close()

    assert route.call_count < 8
    assert counter(metrics, "invoke", "rejected") > 0
