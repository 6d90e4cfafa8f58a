from __future__ import annotations

import asyncio
import logging

from .config import load_settings
from .service import Dashboard


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _prompt(message: str) -> str:
    try:
        return await asyncio.to_thread(input, message)
    except EOFError:
        return "q"


def _output(text: str) -> None:
    print(text, flush=True)


async def _main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    dashboard = Dashboard(settings)
    try:
        await dashboard.run(_prompt, _output)
    finally:
        await dashboard.close()


def main() -> None:
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
