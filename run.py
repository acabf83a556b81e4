"""Entry point for running the API with Uvicorn.

Host and port are read from ``API_HOST`` and ``API_PORT`` (defaults
``0.0.0.0`` and ``8000``).

Usage:
    python run.py
"""
import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "crm_api.app.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
