"""Routers package."""

from . import (
    health,
    auth,
    content,
    graphs,
    knowledge,
)
