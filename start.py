#!/usr/bin/env python3
"""
Start script - serves the API on the configured PORT
"""
from core.config import settings

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
