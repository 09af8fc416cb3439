"""
jax_multibody: forward kinematics of floating-base multibody systems in JAX.

Computes inertial-frame rotations, positions, joint axes and link-to-joint
vectors for a free-floating base carrying an articulated tree, using pure,
JIT-compilable JAX functions.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from .core import RobotModel
from . import kinematics

__version__ = "0.1.0"
__all__ = ["transforms", "core", "kinematics", "RobotModel"]
