import threading
from typing import Any, Hashable

from gdmarshal import engine as gdmarshal_engine
from gdmarshal import logging as gdmarshal_logging
from gdmarshal.engine import EngineInterface

from .call_targets import CallTarget

logger = gdmarshal_logging.get_logger(__name__)


class BindingCache:
    """Resolved callables, looked up at most once per method."""

    def __init__(self):
        self._resolved: dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def resolve(self, target: CallTarget, engine: EngineInterface) -> Any:
        key = target.key
        resolved = self._resolved.get(key)
        if resolved is not None:
            return resolved
        with self._lock:
            if key not in self._resolved:
                self._resolved[key] = target.resolve(engine)
                logger.debug("Resolved %r", target)
            return self._resolved[key]

    def clear(self) -> None:
        with self._lock:
            self._resolved.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._resolved

    def __len__(self) -> int:
        return len(self._resolved)


_cache = BindingCache()


def binding_cache() -> BindingCache:
    """Process-wide cache shared by every dispatcher."""
    return _cache


gdmarshal_engine.register_reset_hook(_cache.clear)
