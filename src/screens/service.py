"""Screen Resolution Service

Selects the screen template for a request context and decodes it. The
service never binds environment values into the document; personalisation
happens in the interpreter.
"""

import time

from returns.result import Failure

from core import LRUCache, get_logger, safe_json_dumps, trace_operation, validate_template
from core.validate import MAX_TEMPLATE_DEPTH, MAX_TEMPLATE_SIZE
from monitoring import MetricsCollector, metrics_collector
from schema import DocumentDecodeError, ScreenContext, ScreenDocument, decode_document
from .errors import ScreenNotFoundError, TemplateDecodeError
from .store import TemplateStore

logger = get_logger(__name__)


class ScreenService:
    """
    Resolves screen documents from a template store.

    Decoded templates are cached per template key (not per screen id, so a
    locale fallback shares the base entry). Absent templates are cached too
    and expire with the cache TTL; call invalidate() after changing a store.
    """

    def __init__(
        self,
        store: TemplateStore,
        cache: LRUCache[ScreenDocument | None] | None = None,
        max_template_size: int = MAX_TEMPLATE_SIZE,
        max_template_depth: int = MAX_TEMPLATE_DEPTH,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.max_template_size = max_template_size
        self.max_template_depth = max_template_depth
        self.metrics = metrics or metrics_collector

        logger.info(
            "screen_service_init",
            store=store.name,
            cache=cache is not None,
            cache_size=cache.max_size if cache is not None else 0,
        )

    def resolve(self, screen_id: str, context: ScreenContext | None = None) -> ScreenDocument:
        """
        Resolve a screen for a request context.

        Args:
            screen_id: Screen identifier
            context: Request context (only used to select a template)

        Returns:
            Decoded screen document

        Raises:
            ScreenNotFoundError: No template for the screen
            StoreUnavailableError: The store could not be reached
            TemplateDecodeError: The template is not a usable document
        """
        context = context or ScreenContext()
        keys = context.template_keys(screen_id)

        with trace_operation("resolve_screen", screen_id=screen_id, store=self.store.name):
            start = time.perf_counter()
            try:
                for key in keys:
                    document = self._load(key, screen_id)
                    if document is not None:
                        logger.info(
                            "screen_resolved",
                            screen_id=screen_id,
                            template_key=key,
                            version=document.version,
                        )
                        return document
            finally:
                self.metrics.record_resolve(self.store.name, time.perf_counter() - start)

        logger.info("screen_not_found", screen_id=screen_id, tried=keys)
        raise ScreenNotFoundError(screen_id, keys)

    def _load(self, key: str, screen_id: str) -> ScreenDocument | None:
        if self.cache is None:
            return self._fetch(key, screen_id)

        if key in self.cache:
            self.metrics.record_cache_hit("template")
        else:
            self.metrics.record_cache_miss("template")

        document = self.cache.get_or_load(key, lambda: self._fetch(key, screen_id))
        self.metrics.set_cache_entries("template", len(self.cache))
        return document

    def _fetch(self, key: str, screen_id: str) -> ScreenDocument | None:
        template = self.store.load(key)
        if template is None:
            return None

        raw = safe_json_dumps(template)
        result = validate_template(template, raw, self.max_template_size, self.max_template_depth)
        if isinstance(result, Failure):
            error = result.failure()
            logger.error("template_invalid", screen_id=screen_id, template_key=key, error=error.message)
            raise TemplateDecodeError(screen_id, error.message)

        try:
            document = decode_document(template, fallback_id=screen_id)
        except DocumentDecodeError as e:
            logger.error("template_decode_failed", screen_id=screen_id, template_key=key, error=str(e))
            raise TemplateDecodeError(screen_id, str(e)) from e

        logger.debug("template_loaded", screen_id=screen_id, template_key=key, components=len(document.components))
        return document

    def invalidate(self, screen_id: str | None = None) -> None:
        """Drop cached templates (one screen, or everything)."""
        if self.cache is None:
            return
        if screen_id is None:
            self.cache.clear()
            logger.info("template_cache_cleared")
            return
        # Locale variants share the screen id prefix but are keyed separately
        prefix = f"{screen_id}."
        removed = self.cache.delete_matching(lambda key: key == screen_id or key.startswith(prefix))
        self.metrics.set_cache_entries("template", len(self.cache))
        logger.info("template_cache_invalidated", screen_id=screen_id, removed=removed)

    def ping(self) -> bool:
        """Whether the backing store can currently answer."""
        return self.store.ping()
