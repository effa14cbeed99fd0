"""
CollabGate - collaboration lifecycle and curation selection service
Runs the FastAPI app under uvicorn
"""

import os

import uvicorn

from app.main import app


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
    )
