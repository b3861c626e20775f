"""Helper for running the meal-plan ASGI application."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import uvicorn


async def _serve_with_duration(server: uvicorn.Server, duration: float) -> None:
    """Run the server and shut it down after the specified duration."""

    async def _shutdown() -> None:
        await asyncio.sleep(duration)
        server.should_exit = True

    asyncio.create_task(_shutdown())
    await server.serve()


def _parse_duration(value: str | None) -> Optional[float]:
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid MEALWEEK_SERVER_DURATION '{value}': {exc}") from exc
    if parsed <= 0:
        raise SystemExit("MEALWEEK_SERVER_DURATION must be greater than 0 when provided.")
    return parsed


def serve(
    host: Optional[str] = None,
    port: Optional[int] = None,
    *,
    reload: Optional[bool] = None,
    duration: Optional[float] = None,
) -> None:
    host = host or os.environ.get("MEALWEEK_SERVER_HOST", "127.0.0.1")
    port = port or int(os.environ.get("MEALWEEK_SERVER_PORT", "8000"))
    reload_enabled = reload if reload is not None else os.environ.get("RELOAD") == "1"
    if duration is None:
        duration = _parse_duration(os.environ.get("MEALWEEK_SERVER_DURATION"))

    if reload_enabled and duration is not None:
        raise SystemExit("Use RELOAD=0 when specifying MEALWEEK_SERVER_DURATION.")

    if reload_enabled:
        uvicorn.run("mealweek.server.app:app", host=host, port=port, reload=True)
        return

    config = uvicorn.Config("mealweek.server.app:app", host=host, port=port, reload=False)
    server = uvicorn.Server(config)

    if duration is not None:
        asyncio.run(_serve_with_duration(server, duration))
        return

    server.run()


def main() -> None:
    """Entry point used by ``python -m mealweek.server.run``."""

    serve()


if __name__ == "__main__":
    main()
