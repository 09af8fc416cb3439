"""
Rotation and rigid-body transform helpers.

- SO(3) rotations and the elementary axis-angle rotation (so3 module)
- SE(3) homogeneous transforms (se3 module)

All functions are pure, stateless, and JIT-compilable.
"""

from . import so3
from . import se3

__all__ = [
    "so3",
    "se3",
]
