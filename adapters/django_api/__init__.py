"""
SpaceFlow Django HTTP adapter.
Thin framework glue over the intent pipeline and inventory store.
"""

from adapters.django_api.wiring import (
    SpaceflowDependencies,
    build_dependencies,
    configure_dependencies,
    reset_dependencies,
)

__all__ = [
    "SpaceflowDependencies",
    "build_dependencies",
    "configure_dependencies",
    "reset_dependencies",
]
