from __future__ import annotations

import os
from functools import lru_cache

from plan_store import PlanStore


@lru_cache(maxsize=1)
def get_store() -> PlanStore:
    """Server-side store; never mirrors, it *is* the mirror target."""
    return PlanStore(data_dir=os.getenv("BACKEND_DATA_DIR", "backend_data"))
