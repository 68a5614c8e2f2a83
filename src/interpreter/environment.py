"""Environment - read-only key/value bindings for one evaluation pass.

Keys are dot paths (``user.role``, ``job.count``). A path is looked up
verbatim first and then by walking nested mappings / sequences, so both
``{"user.name": "Jane"}`` and ``{"user": {"name": "Jane"}}`` bind
``user.name``. Overlays stack new layers on top of a parent without copying
or mutating it; the innermost layer wins.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterator, Protocol

from schema import ScreenContext

_MISSING = object()


def _descend(value: Any, parts: list[str]) -> Any:
    for part in parts:
        if isinstance(value, Mapping):
            if part not in value:
                return _MISSING
            value = value[part]
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            if not part.isdigit() or int(part) >= len(value):
                return _MISSING
            value = value[int(part)]
        else:
            return _MISSING
    return value


def _resolve(layer: Mapping[str, Any], path: str) -> Any:
    if path in layer:
        return layer[path]

    parts = path.split(".")
    # Longest bound prefix first: "a.b" beats "a" for path "a.b.c"
    for i in range(len(parts) - 1, 0, -1):
        head = ".".join(parts[:i])
        if head in layer:
            value = _descend(layer[head], parts[i:])
            if value is not _MISSING:
                return value
    return _MISSING


class Environment(Mapping[str, Any]):
    """Immutable, layered mapping of bindings."""

    __slots__ = ("_layers",)

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._layers: tuple[Mapping[str, Any], ...] = (MappingProxyType(dict(values or {})),)

    @classmethod
    def of(cls, values: "Environment | Mapping[str, Any] | None") -> "Environment":
        """Wrap a plain mapping (an Environment is returned as is)."""
        if isinstance(values, Environment):
            return values
        if values is None:
            return cls()
        if not isinstance(values, Mapping):
            raise TypeError(f"environment must be a mapping, got {type(values).__name__}")
        return cls(values)

    def lookup(self, path: str) -> tuple[bool, Any]:
        """Resolve a dot path. Returns (found, value)."""
        for layer in self._layers:
            value = _resolve(layer, path)
            if value is not _MISSING:
                return True, value
        return False, None

    def get(self, path: str, default: Any = None) -> Any:
        found, value = self.lookup(path)
        return value if found else default

    def overlay(self, values: Mapping[str, Any]) -> "Environment":
        """New environment with values layered over this one."""
        child = Environment.__new__(Environment)
        child._layers = (MappingProxyType(dict(values)), *self._layers)
        return child

    def with_item(self, item: Any, index: int) -> "Environment":
        """Item scope for list expansion: the record is bound under ``item``."""
        values: dict[str, Any] = {"item": item}
        if not (isinstance(item, Mapping) and "index" in item):
            values["item.index"] = index
        return self.overlay(values)

    @property
    def depth(self) -> int:
        """Number of layers."""
        return len(self._layers)

    def __getitem__(self, path: str) -> Any:
        found, value = self.lookup(path)
        if not found:
            raise KeyError(path)
        return value

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.lookup(path)[0]

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for layer in self._layers:
            for key in layer:
                if key not in seen:
                    seen.add(key)
                    yield key

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"Environment(keys={sorted(self)!r})"


class EnvironmentProvider(Protocol):
    """Supplies the bindings for a request. Owned by the caller."""

    def provide(self, context: ScreenContext) -> Environment:
        ...


class ContextEnvironmentProvider:
    """
    Builds an environment from the request context plus configured values.

    The request context is exposed under ``request.*``; values configured
    for the requesting user override the static ones.
    """

    def __init__(
        self,
        static: Mapping[str, Any] | None = None,
        per_user: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self.static = dict(static or {})
        self.per_user = {user: dict(values) for user, values in (per_user or {}).items()}

    def provide(self, context: ScreenContext) -> Environment:
        env = Environment(self.static)

        if context.user_id and context.user_id in self.per_user:
            env = env.overlay(self.per_user[context.user_id])

        request = {
            f"request.{key}": value
            for key, value in context.model_dump(mode="json", by_alias=True, exclude_none=True).items()
        }
        request["request.routeLabel"] = f"Route {context.route_id}" if context.route_id else "No route assigned"
        service_date = context.service_date or datetime.now()
        request["request.serviceDateLabel"] = f"{service_date:%b} {service_date.day}, {service_date:%Y}"
        return env.overlay(request)
