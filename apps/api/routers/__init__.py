"""Routers package."""

from . import (
    health,
    auth,
    profiles,
    uploads,
    credentials,
)
