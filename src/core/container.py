"""Dependency Injection Container."""

from pathlib import Path

from injector import Injector, Module, provider, singleton

from core.config import Settings, get_settings
from core.cache import LRUCache
from core.json import JSONParseError, decode_json_object
from core.logging_config import get_logger
from interpreter import (
    ActionDispatcher,
    ContextEnvironmentProvider,
    EnvironmentProvider,
    HttpActionDispatcher,
    Interpreter,
    LoggingActionDispatcher,
)
from monitoring import MetricsCollector, metrics_collector
from resources import ResourceLoader
from schema import ScreenDocument
from screens import FileTemplateStore, HttpTemplateStore, MemoryTemplateStore, ScreenService, TemplateStore

logger = get_logger(__name__)


class CoreModule(Module):
    """Core dependencies."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_metrics(self) -> MetricsCollector:
        """Provide the process-wide metrics collector."""
        return metrics_collector

    @singleton
    @provider
    def provide_template_store(self) -> TemplateStore:
        """Provide the configured template store."""
        if self.settings.template_store == "file":
            return FileTemplateStore(self.settings.template_dir)
        if self.settings.template_store == "http":
            return HttpTemplateStore(self.settings.template_url, timeout=self.settings.template_timeout)
        return MemoryTemplateStore()

    @singleton
    @provider
    def provide_screen_service(self, store: TemplateStore, metrics: MetricsCollector) -> ScreenService:
        """Provide screen service with optional template cache."""
        cache: LRUCache[ScreenDocument | None] | None = None
        if self.settings.enable_cache:
            cache = LRUCache(max_size=self.settings.cache_size, ttl_seconds=self.settings.cache_ttl)

        return ScreenService(
            store,
            cache=cache,
            max_template_size=self.settings.max_template_size,
            max_template_depth=self.settings.max_template_depth,
            metrics=metrics,
        )

    @singleton
    @provider
    def provide_dispatcher(self, metrics: MetricsCollector) -> ActionDispatcher:
        """Provide HTTP dispatcher when an action sink is configured."""
        if self.settings.action_url:
            return HttpActionDispatcher(self.settings.action_url, timeout=self.settings.action_timeout, metrics=metrics)
        return LoggingActionDispatcher(metrics=metrics)

    @singleton
    @provider
    def provide_interpreter(self, dispatcher: ActionDispatcher) -> Interpreter:
        return Interpreter(
            dispatcher=dispatcher,
            max_depth=self.settings.max_depth,
            coerce_types=self.settings.coerce_condition_types,
        )

    @provider
    def provide_resource_loader(self) -> ResourceLoader:
        """Provide a loader for remote resources (one per render session)."""
        return ResourceLoader(timeout=self.settings.resource_timeout)

    @singleton
    @provider
    def provide_environment_provider(self) -> EnvironmentProvider:
        """Provide bindings from the configured environment file, if any."""
        path = self.settings.environment_file
        if not path:
            return ContextEnvironmentProvider()

        try:
            data = decode_json_object(Path(path).read_bytes())
        except (OSError, JSONParseError) as e:
            logger.error("environment_file_invalid", path=path, error=str(e))
            raise

        return ContextEnvironmentProvider(static=data.get("static"), per_user=data.get("users"))


def create_container(settings: Settings | None = None) -> Injector:
    """Create configured injector."""
    return Injector([CoreModule(settings)])
