"""Local dev entrypoint for the restforge API."""

from __future__ import annotations

import os

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "restforge.api.app:app_from_env",
        factory=True,
        host="127.0.0.1",
        port=int(os.environ.get("RESTFORGE_PORT", "8000")),
        reload=True,
        log_level=os.environ.get("RESTFORGE_LOG_LEVEL", "debug"),
    )
