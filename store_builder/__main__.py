from __future__ import annotations

import logging
import socket

import uvicorn

from store_builder.config import load_settings


def _pick_port(*, host: str, preferred: int, tries: int) -> int:
    for port in range(preferred, preferred + max(1, tries)):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                s.bind((host, port))
                return port
            except OSError:
                continue
    return preferred


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    port = _pick_port(host=settings.host, preferred=settings.port, tries=settings.port_tries)
    logging.getLogger(__name__).info("Store builder listening on http://%s:%s/", settings.host, port)

    uvicorn.run(
        "store_builder.main:app",
        host=settings.host,
        port=port,
        reload=settings.reload,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
