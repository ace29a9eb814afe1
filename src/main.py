"""Main FastAPI application entry point for the lesson assistant.

All application logic is in src.api.main.
"""

from src.api.main import app

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host="127.0.0.1", port=8030, reload=True)
