"""
mutualpool_node/app.py
----------------------
Thin entrypoint for running the pool API via:

    uvicorn mutualpool_node.app:app

All real route wiring lives in mutualpool_node.pool_api.
"""

from .pool_api import create_app

app = create_app()


if __name__ == "__main__":
    # Convenience for: python -m mutualpool_node.app
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
