# HTTP API
"""
FastAPI application exposing the recruit lifecycle and Zoom routes.
"""

from recruiting.api.app import Services, build_services, configure_logging, create_app

__all__ = [
    "Services",
    "build_services",
    "configure_logging",
    "create_app",
]
