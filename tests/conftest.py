"""Pytest configuration and fixtures."""

import os
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from core import LRUCache
from core.config import Settings
from interpreter import ContextEnvironmentProvider, Environment, Interpreter, LoggingActionDispatcher
from monitoring import MetricsCollector
from screens import MemoryTemplateStore, ScreenService


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["SDUI_LOG_LEVEL"] = "DEBUG"
    os.environ["SDUI_TEMPLATE_STORE"] = "memory"


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Test settings (no .env file)."""
    return Settings(_env_file=None)


@pytest.fixture
def metrics():
    """Metrics collector with its own registry."""
    return MetricsCollector(registry=CollectorRegistry())


# ============================================================================
# Template Fixtures
# ============================================================================

@pytest.fixture
def welcome_template() -> dict[str, Any]:
    """Small screen with a personalised header and a bound list."""
    return {
        "id": "test-screen",
        "version": 1,
        "title": "Welcome",
        "components": [
            {"id": "header", "type": "text", "text": "Welcome, {{user.name}}!"},
            {
                "id": "admin-banner",
                "type": "text",
                "text": "Admin tools",
                "conditions": [{"field": "user.role", "operator": "equals", "value": "admin"}],
            },
            {
                "id": "jobs",
                "type": "list",
                "dataSource": "jobs",
                "itemTemplate": {
                    "id": "job",
                    "type": "card",
                    "children": [
                        {"id": "title", "type": "text", "text": "{{item.customerName}}"},
                        {
                            "id": "start",
                            "type": "button",
                            "label": "Start",
                            "action": {"type": "invoke", "target": "startJob", "parameters": {"jobId": "{{item.id}}"}},
                        },
                    ],
                },
            },
        ],
    }


@pytest.fixture
def deep_template() -> dict[str, Any]:
    """Screen whose only component nests fifty containers deep."""
    node: dict[str, Any] = {"id": "leaf", "type": "text", "text": "bottom"}
    for level in range(50):
        node = {"id": f"level-{level}", "type": "vstack", "children": [node]}
    return {"id": "deep", "version": 1, "components": [node]}


@pytest.fixture
def store(welcome_template):
    """Memory store holding the welcome template (and the built-ins)."""
    return MemoryTemplateStore({"test-screen": welcome_template})


@pytest.fixture
def screen_service(store, metrics):
    """Screen service with a small cache."""
    return ScreenService(store, cache=LRUCache(max_size=16), metrics=metrics)


# ============================================================================
# Interpreter Fixtures
# ============================================================================

@pytest.fixture
def dispatcher(metrics):
    """Dispatcher that only records actions."""
    return LoggingActionDispatcher(metrics=metrics)


@pytest.fixture
def interpreter(dispatcher):
    """Interpreter with default limits."""
    return Interpreter(dispatcher=dispatcher)


@pytest.fixture
def environment():
    """Typical technician bindings."""
    return Environment(
        {
            "user.name": "Jane",
            "user.role": "technician",
            "jobs": [
                {"id": "j1", "customerName": "Acme Pest"},
                {"id": "j2", "customerName": "Globex"},
            ],
        }
    )


@pytest.fixture
def environment_provider():
    """Provider with bindings for user u1."""
    return ContextEnvironmentProvider(
        static={"appName": "PestGenie"},
        per_user={"u1": {"user.name": "Jane", "user.role": "technician", "jobs": []}},
    )
