"""Local dev entrypoint for the fieldguard API.

Expects the package to be installed (``pip install -e .``).
"""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "fieldguard.api:app",
        host=os.environ.get("FIELDGUARD_HOST", "127.0.0.1"),
        port=int(os.environ.get("FIELDGUARD_PORT", "8000")),
        reload=True,
        log_level=os.environ.get("FIELDGUARD_LOG_LEVEL", "info"),
    )
