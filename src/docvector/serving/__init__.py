"""
Serving — FastAPI application for uploads, auth redirects and the debug log.

Run with ``uvicorn docvector.serving.app:app``.
"""
