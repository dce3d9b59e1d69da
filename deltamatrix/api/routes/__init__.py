"""API routes module."""
from deltamatrix.api.routes.matrix import router as matrix_router

__all__ = [
    "matrix_router",
]
