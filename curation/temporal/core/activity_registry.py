"""Registry the worker reads its activity list from."""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RegisteredActivity:
    category: str
    name: str
    fn: Callable

    @property
    def key(self) -> str:
        return f"{self.category}:{self.name}"


class ActivityRegistry:
    """Activities keyed ``category:name``, filled in by the ``register`` decorator."""

    _entries: Dict[str, RegisteredActivity] = {}

    @classmethod
    def register(cls, category: str, name: Optional[str] = None):
        def decorator(fn: Callable) -> Callable:
            entry = RegisteredActivity(category=category, name=name or fn.__name__, fn=fn)
            previous = cls._entries.get(entry.key)
            if previous is not None and previous.fn is not fn:
                LOGGER.warning(f"Activity {entry.key} registered again; replacing {previous.fn!r}")
            cls._entries[entry.key] = entry
            return fn
        return decorator

    @classmethod
    def get_all_activities(cls) -> Dict[str, Callable]:
        return {key: entry.fn for key, entry in cls._entries.items()}

    @classmethod
    def get_by_category(cls, category: str) -> List[Callable]:
        return [entry.fn for entry in cls._entries.values() if entry.category == category]
