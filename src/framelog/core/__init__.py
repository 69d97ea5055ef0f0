"""Core package initializer for framelog.

Downstream code imports from the submodules directly, e.g.:
    from framelog.core.settings import settings, load_settings, Settings, get_logger
    from framelog.core.storage.commit_store import CommitStore
"""

from __future__ import annotations

__all__ = ["__doc__"]
