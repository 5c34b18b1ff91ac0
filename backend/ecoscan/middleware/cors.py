"""
CORS Middleware Configuration
Lets the web client (scan page, dashboard) call the API from its own origin.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def setup_cors(app: FastAPI) -> None:
    """
    Configure CORS middleware for the FastAPI application.

    Args:
        app: FastAPI application instance

    Development origins are allowed by default. In production, restrict
    this list to the deployed frontend domain.
    """

    origins = [
        "http://localhost:3000",  # React dev server
        "http://127.0.0.1:3000",
        "http://localhost:5173",  # Vite dev server
        "http://localhost:8080",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,  # Authorization header
        allow_methods=["*"],
        allow_headers=["*"],
    )
