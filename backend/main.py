from __future__ import annotations

from fastapi import FastAPI

from config import setup_logging

from .routers import state

setup_logging()

app = FastAPI(title="fitplan_coach sync backend", version="0.1.0")
app.include_router(state.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
