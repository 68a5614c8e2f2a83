"""Screen Template Stores

Back ends that hold screen templates at rest. A store returns the decoded
template object for a key, or None when it has no such template; it raises
StoreUnavailableError when it cannot answer at all.
"""

import copy
import threading
from pathlib import Path
from typing import Any, Protocol

import httpx
import pybreaker

from core import get_logger
from core.json import JSONParseError, decode_json
from .defaults import default_templates
from .errors import StoreUnavailableError, TemplateDecodeError

logger = get_logger(__name__)

Template = dict[str, Any]


class TemplateStore(Protocol):
    """Read-only template lookup."""

    name: str

    def load(self, key: str) -> Template | None:
        ...

    def ping(self) -> bool:
        ...


def _decode(key: str, payload: bytes) -> Template:
    try:
        template = decode_json(payload)
    except JSONParseError as e:
        raise TemplateDecodeError(key, f"Template '{key}' is not valid JSON: {e}") from e
    if not isinstance(template, dict):
        raise TemplateDecodeError(key, f"Template '{key}' must be a JSON object")
    return template


class MemoryTemplateStore:
    """In-memory templates (fixtures, tests, the built-in screens)."""

    name = "memory"

    def __init__(self, templates: dict[str, Template] | None = None, include_defaults: bool = True) -> None:
        self._templates: dict[str, Template] = default_templates() if include_defaults else {}
        self._templates.update(templates or {})
        self._lock = threading.Lock()

    def load(self, key: str) -> Template | None:
        with self._lock:
            template = self._templates.get(key)
        return copy.deepcopy(template) if template is not None else None

    def put(self, key: str, template: Template) -> None:
        """Add or replace a template."""
        with self._lock:
            self._templates[key] = copy.deepcopy(template)

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._templates.pop(key, None) is not None

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._templates)

    def ping(self) -> bool:
        return True


class FileTemplateStore:
    """
    Templates stored as ``<directory>/<key>.json``.

    Keys are validated upstream; the resolved path is still checked to stay
    inside the directory.
    """

    name = "file"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory).resolve()
        logger.info("store_init", store=self.name, directory=str(self.directory))

    def _path(self, key: str) -> Path:
        path = (self.directory / f"{key}.json").resolve()
        if path.parent != self.directory:
            raise StoreUnavailableError(key, f"Template key '{key}' escapes the template directory")
        return path

    def load(self, key: str) -> Template | None:
        path = self._path(key)
        try:
            payload = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("template_read_failed", key=key, path=str(path), error=str(e))
            raise StoreUnavailableError(key, f"Cannot read template '{key}': {e.strerror}") from e
        return _decode(key, payload)

    def ping(self) -> bool:
        return self.directory.is_dir()


class HttpTemplateStore:
    """
    Templates served by a remote content service at ``<base>/templates/<key>``,
    with circuit breaker protection.
    """

    name = "http"

    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.Client | None = None) -> None:
        """
        Initialize HTTP store with circuit breaker.

        Args:
            base_url: Base URL of the template service
            timeout: Request timeout in seconds
            client: Optional preconfigured client
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

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
            name="template-store-http",
            listeners=[BreakerListener()],
        )

        logger.info("store_init", store=self.name, url=self.base_url)

    def _fetch(self, url: str) -> httpx.Response | None:
        response = self._client.get(url)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        # Raised inside the breaker so 5xx responses count as failures
        response.raise_for_status()
        return response

    def load(self, key: str) -> Template | None:
        url = f"{self.base_url}/templates/{key}"
        try:
            response = self._breaker.call(self._fetch, url)
        except pybreaker.CircuitBreakerError as e:
            logger.warning("template_store_circuit_open", key=key)
            raise StoreUnavailableError(key, "Template store circuit breaker is open") from e
        except httpx.HTTPError as e:
            logger.error("template_fetch_failed", key=key, url=url, error=str(e))
            raise StoreUnavailableError(key, f"Template store request failed: {e}") from e

        if response is None:
            return None
        return _decode(key, response.content)

    def ping(self) -> bool:
        return self._breaker.current_state != pybreaker.STATE_OPEN

    def close(self) -> None:
        """Close HTTP client."""
        self._client.close()
