"""Development server.

Serves the live switchyard App object with uvicorn.
"""

from typing import Any


def run_server(
    app: Any,
    host: str,
    port: int,
    *,
    log_level: str = "info",
    reload: bool = False,
    app_path: str | None = None,
) -> None:
    """Start uvicorn with the given App.

    uvicorn only reloads from an import string, so *reload* needs
    *app_path* (``"module:attribute"``); without it the live object is
    served and reload is off.
    """
    import uvicorn

    if reload and app_path is not None:
        uvicorn.run(app_path, host=host, port=port, log_level=log_level, reload=True)
        return
    uvicorn.run(app, host=host, port=port, log_level=log_level)
