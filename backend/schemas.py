from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel


class NamespaceData(BaseModel):
    data: Any = None


class NamespaceOut(NamespaceData):
    key: str


class StateOut(BaseModel):
    namespaces: Dict[str, Any]
