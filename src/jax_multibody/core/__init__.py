"""Core robot model data structures and errors for jax_multibody.

This module provides the immutable data structures describing a
floating-base kinematic tree and the exceptions raised when one is
malformed or evaluated with too few joint variables.
"""

from .errors import InsufficientJointVariablesError, KinematicsError, MalformedModelError
from .robot_model import BaseLink, Joint, JointType, Link, RobotModel, validate_model

__all__ = [
    "BaseLink",
    "Joint",
    "JointType",
    "Link",
    "RobotModel",
    "validate_model",
    "KinematicsError",
    "MalformedModelError",
    "InsufficientJointVariablesError",
]
