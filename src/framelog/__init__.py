"""framelog: versioned commit history and changelog analytics for design files.

Public entry points live in the subpackages:

- :mod:`framelog.core` for contracts, storage, dedup, versioning and analytics,
- :mod:`framelog.pipelines` for the commit-creation flow,
- :mod:`framelog.cli` and :mod:`framelog.api` for the outer surfaces.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
