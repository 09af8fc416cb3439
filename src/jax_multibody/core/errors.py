"""Exceptions raised by the kinematics solver and model validation."""


class KinematicsError(Exception):
    """Base class for all jax_multibody errors."""
    pass


class MalformedModelError(KinematicsError, ValueError):
    """The robot model breaks a structural invariant.

    Raised for joints referencing a parent link that has not been computed
    yet, dangling joint/link references, links driven by the wrong joint and
    unknown joint types.
    """
    pass


class InsufficientJointVariablesError(KinematicsError, IndexError):
    """The joint-variable vector is too short for a joint's q index."""

    def __init__(self, joint_id: int, q_index: int, num_q: int):
        self.joint_id = joint_id
        self.q_index = q_index
        self.num_q = num_q
        super().__init__(
            f"Joint {joint_id} reads qm[{q_index}] but qm has only {num_q} entries"
        )
