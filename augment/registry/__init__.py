"""Host module registry.

Responsibilities:
- Hold the host's internal modules (id -> exports) in load order
- Keep lazy entries that only materialize when the host requires them
- Notify listeners whenever an entry loads (feeds async discovery)
- Answer capability queries: find(filter) -> exports | None
"""

from .module_registry import (  # noqa: F401
    LazyEntry,
    ModuleRegistry,
    LoadListener,
)

__all__ = ["ModuleRegistry", "LazyEntry", "LoadListener"]
