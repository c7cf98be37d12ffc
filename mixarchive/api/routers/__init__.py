"""API router factory functions."""
from .archives import create_archives_router
from .invocations import create_invocations_router
from .files import create_files_router
from .systems import create_systems_router

__all__ = [
    "create_archives_router",
    "create_invocations_router",
    "create_files_router",
    "create_systems_router",
]
