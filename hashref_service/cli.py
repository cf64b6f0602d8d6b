from __future__ import annotations

import uvicorn

from hashref_service.app.settings import settings


def _run(*, reload_enabled: bool) -> None:
    uvicorn.run(
        "hashref_service.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload_enabled,
    )


def main() -> None:
    _run(reload_enabled=False)


def main_dev() -> None:
    _run(reload_enabled=True)
