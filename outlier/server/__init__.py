"""HTTP server layer.

This package contains:
- config.py: Configuration loading (YAML + environment)
- schemas.py: Request/response models
- rest_api.py: FastAPI application factory
- http_server.py: uvicorn launcher
"""
