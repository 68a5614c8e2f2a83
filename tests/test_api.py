"""HTTP API tests."""

import pytest
from fastapi.testclient import TestClient
from injector import Injector, InstanceProvider, Module

import main
from core.container import CoreModule
from interpreter import ActionDispatcher, EnvironmentProvider
from main import CORRELATION_HEADER, create_app
from monitoring import MetricsCollector
from resources import ResourceLoader
from screens import TECHNICIAN_DASHBOARD_ID, ScreenService, TemplateStore


class FixtureModule(Module):
    """Replaces configured back ends with test doubles."""

    def __init__(self, store, metrics, dispatcher, environment_provider):
        self.store = store
        self.metrics = metrics
        self.dispatcher = dispatcher
        self.environment_provider = environment_provider

    def configure(self, binder):
        binder.bind(TemplateStore, to=InstanceProvider(self.store))
        binder.bind(MetricsCollector, to=InstanceProvider(self.metrics))
        binder.bind(ActionDispatcher, to=InstanceProvider(self.dispatcher))
        binder.bind(EnvironmentProvider, to=InstanceProvider(self.environment_provider))


class RecordingLogger:
    """Collects log events instead of writing them."""

    def __init__(self):
        self.events = []

    def _record(self, event, **fields):
        self.events.append((event, fields))

    debug = info = warning = error = _record


class DownStore:
    name = "down"

    def load(self, key):
        return None

    def ping(self):
        return False


@pytest.fixture
def container(settings, store, metrics, dispatcher, environment_provider):
    return Injector([CoreModule(settings), FixtureModule(store, metrics, dispatcher, environment_provider)])


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as test_client:
        yield test_client


@pytest.mark.unit
class TestRender:

    def test_end_to_end(self, client):
        """Template + provider bindings produce a personalised screen."""
        response = client.get("/v1/screens/test-screen/render", params={"userId": "u1"})

        assert response.status_code == 200
        body = response.json()
        header = body["components"][0]
        assert header["identity"] == "header"
        assert header["text"] == "Welcome, Jane!"
        assert body["components"][1]["visible"] is False  # admin banner
        assert body["components"][2]["children"] == []  # u1 has no jobs

    def test_unknown_user_keeps_placeholder(self, client):
        response = client.get("/v1/screens/test-screen/render", params={"userId": "nobody"})
        assert response.json()["components"][0]["text"] == "Welcome, {{user.name}}!"

    def test_post_environment_overlays(self, client):
        response = client.post(
            "/v1/screens/test-screen/render",
            params={"userId": "u1"},
            json={
                "environment": {"user.role": "admin", "jobs": [{"id": "j9", "customerName": "Initech"}]},
            },
        )

        body = response.json()
        assert body["components"][0]["text"] == "Welcome, Jane!"
        assert body["components"][1]["visible"] is True
        jobs = body["components"][2]["children"]
        assert [job["identity"] for job in jobs] == ["jobs#0"]
        assert body["actions"] == [
            {
                "identity": "jobs#0/start",
                "action": {"type": "invoke", "target": "startJob", "parameters": {"jobId": "j9"}},
            }
        ]

    def test_body_context_overrides_query(self, client):
        response = client.post(
            "/v1/screens/test-screen/render",
            params={"userId": "nobody"},
            json={"context": {"userId": "u1"}},
        )
        assert response.json()["components"][0]["text"] == "Welcome, Jane!"

    def test_etag(self, client):
        first = client.get("/v1/screens/test-screen/render", params={"userId": "u1"})
        etag = first.headers["ETag"]

        second = client.get(
            "/v1/screens/test-screen/render", params={"userId": "u1"}, headers={"If-None-Match": etag}
        )
        assert second.status_code == 304

        other = client.get(
            "/v1/screens/test-screen/render", params={"userId": "nobody"}, headers={"If-None-Match": etag}
        )
        assert other.status_code == 200

    def test_builtin_dashboard(self, client):
        response = client.get(
            f"/v1/screens/{TECHNICIAN_DASHBOARD_ID}/render",
            params={"userId": "u1", "routeId": "R7", "serviceDate": "2024-03-01T08:00:00Z"},
        )
        assert response.status_code == 200
        texts = [n.get("text") for n in _walk(response.json()["components"])]
        assert "Good day, Jane" in texts
        assert "Route R7 • Mar 1, 2024" in texts

    def test_deep_template_renders_truncated(self, client, store, deep_template):
        """Nesting past the render depth limit still returns the screen."""
        store.put("deep", deep_template)

        response = client.get("/v1/screens/deep/render")

        assert response.status_code == 200
        truncated = [n for n in _walk(response.json()["components"]) if n["status"] == "truncated"]
        assert len(truncated) == 1
        assert truncated[0]["reason"] == "max_depth"


def _walk(nodes):
    for node in nodes:
        yield node
        yield from _walk(node.get("children", []))


@pytest.mark.unit
class TestFetch:

    def test_fetch_template(self, client):
        response = client.get("/v1/screens/test-screen", params={"userId": "u1"})

        assert response.status_code == 200
        assert response.json()["components"][0]["text"] == "Welcome, {{user.name}}!"

    def test_not_found(self, client):
        response = client.get("/v1/screens/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "Screen 'missing' not found"}

    @pytest.mark.parametrize("screen_id", ["bad$id", "a..b"])
    def test_invalid_screen_id(self, client, screen_id):
        response = client.get(f"/v1/screens/{screen_id}")
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_invalid_locale(self, client):
        response = client.get("/v1/screens/test-screen", params={"locale": "en US!"})
        assert response.status_code == 400

    def test_locale_fallback(self, client):
        response = client.get("/v1/screens/test-screen", params={"locale": "es-MX"})
        assert response.status_code == 200


@pytest.mark.unit
class TestInteractions:

    def test_interaction_dispatches(self, client, dispatcher):
        response = client.post(
            "/v1/screens/test-screen/interactions",
            params={"userId": "u1"},
            json={"identity": "jobs#0/start", "environment": {"jobs": [{"id": "j1", "customerName": "Acme"}]}},
        )

        assert response.status_code == 200
        assert response.json() == {
            "action": {"type": "invoke", "target": "startJob", "parameters": {"jobId": "j1"}}
        }
        assert [a.target for a in dispatcher.dispatched] == ["startJob"]

    def test_unknown_identity(self, client, dispatcher):
        response = client.post(
            "/v1/screens/test-screen/interactions", params={"userId": "u1"}, json={"identity": "jobs#3/start"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"
        assert len(dispatcher.dispatched) == 0

    def test_missing_identity(self, client):
        response = client.post("/v1/screens/test-screen/interactions", json={})
        assert response.status_code == 400


@pytest.mark.unit
class TestOperations:

    def test_correlation_header(self, client):
        echoed = client.get("/healthz", headers={CORRELATION_HEADER: "abc-123"})
        assert echoed.headers[CORRELATION_HEADER] == "abc-123"

        generated = client.get("/healthz")
        assert generated.headers[CORRELATION_HEADER].startswith("req_")

    def test_health(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}
        assert client.get("/readyz").json() == {"status": "ready", "store": "memory"}

    def test_ready_when_store_down(self, settings, metrics, dispatcher, environment_provider):
        container = Injector(
            [CoreModule(settings), FixtureModule(DownStore(), metrics, dispatcher, environment_provider)]
        )
        with TestClient(create_app(container)) as client:
            response = client.get("/readyz")

        assert response.status_code == 503
        assert response.json()["error"] == "store_unavailable"

    def test_metrics(self, client):
        client.get("/v1/screens/test-screen/render", params={"userId": "u1"})
        client.get("/v1/screens/missing/render")

        response = client.get("/metrics")
        assert response.status_code == 200
        assert 'sdui_screen_requests_total{endpoint="render",status="success"} 1.0' in response.text
        assert 'sdui_screen_requests_total{endpoint="render",status="not_found"} 1.0' in response.text

    def test_container_wiring(self, container, store):
        service = container.get(ScreenService)
        assert service.store is store
        assert service.cache is not None

    def test_resource_loader_per_session(self, container):
        assert container.get(ResourceLoader) is not container.get(ResourceLoader)

    def test_request_logged(self, client, monkeypatch):
        recorder = RecordingLogger()
        monkeypatch.setattr(main, "logger", recorder)

        client.get("/healthz")
        client.get("/v1/screens/missing")

        requests = [fields for event, fields in recorder.events if event == "http_request"]
        assert [(r["method"], r["path"], r["status"]) for r in requests] == [
            ("GET", "/healthz", 200),
            ("GET", "/v1/screens/missing", 404),
        ]
        assert all(r["duration_ms"] >= 0 for r in requests)
