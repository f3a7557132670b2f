#!/usr/bin/env python3
"""Start the GitScribe API server (uvicorn, auto-reload when RELOAD=1)."""
import os

import uvicorn

from gitscribe.api.dependencies import get_config

if __name__ == "__main__":
    config = get_config()
    uvicorn.run(
        "gitscribe.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.log_level.lower(),
        reload=os.getenv("RELOAD", "").lower() in ("1", "true", "yes"),
    )
