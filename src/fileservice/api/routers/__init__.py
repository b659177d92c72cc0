"""API routers for the File Service API."""

from fileservice.api.routers import files, health, sas

__all__ = ["files", "health", "sas"]
