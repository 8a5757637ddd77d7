"""FastAPI dependency injection — provides the ServerRuntime singleton."""

from __future__ import annotations

from demesne.api.runtime import ServerRuntime

_runtime: ServerRuntime | None = None


def set_runtime(runtime: ServerRuntime | None) -> None:
    global _runtime
    _runtime = runtime


def get_runtime() -> ServerRuntime:
    if _runtime is None:
        raise RuntimeError("ServerRuntime not initialized — server not started correctly.")
    return _runtime
