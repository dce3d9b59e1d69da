"""
Middleware package for the application.
"""

from deltamatrix.middleware.request_id import RequestIDMiddleware

__all__ = [
    "RequestIDMiddleware",
]
