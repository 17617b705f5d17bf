"""Package sequencing engine.

This package contains the scheduler that runs configured action packages:
- package.py: Package definitions (actions, trigger filter, hooks)
- catalog.py: Ordered package catalog with id/name lookup
- catalog_loader.py: YAML loading of catalogs
- filters.py: Contact filter predicates
- executor.py: Action application and structural inverses
- revert.py: Timed auto-revert
- scheduler.py: Run lifecycle, dedup, run-once/repeat, cancellation
- dispatcher.py: Event to trigger routing
"""

from .package import (
    ActionSet,
    ColliderSet,
    ObjectSet,
    Package,
    PackageHook,
    PackageHooks,
    SoundSet,
    TriggerFilter,
)
from .catalog import PackageCatalog, PackageRef
from .catalog_loader import PackageCatalogLoader
from .filters import ContactCandidate, FilterMatcher
from .executor import ActionExecutor
from .revert import RevertScheduler
from .scheduler import PackageRun, PackageScheduler
from .dispatcher import TriggerDispatcher

__all__ = [
    "ActionSet",
    "ColliderSet",
    "ObjectSet",
    "Package",
    "PackageHook",
    "PackageHooks",
    "SoundSet",
    "TriggerFilter",
    "PackageCatalog",
    "PackageRef",
    "PackageCatalogLoader",
    "ContactCandidate",
    "FilterMatcher",
    "ActionExecutor",
    "RevertScheduler",
    "PackageRun",
    "PackageScheduler",
    "TriggerDispatcher",
]
