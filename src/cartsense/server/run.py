"""Launch the CartSense document API under uvicorn."""

from __future__ import annotations

import uvicorn

from cartsense.config import get_settings


def main() -> None:
    """Entry point installed as ``cartsense-server``."""

    settings = get_settings()
    uvicorn.run("cartsense.server.app:app", host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    main()
