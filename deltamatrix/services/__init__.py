"""Services package."""
from deltamatrix.services.matrix_service import MatrixSnapshot, MotionDeltaMatrixService

__all__ = ["MatrixSnapshot", "MotionDeltaMatrixService"]
