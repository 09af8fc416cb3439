"""Forward kinematics of a floating-base multibody tree.

Given the base pose in the inertial frame and the joint variables, the
solver walks the joints once in id order, composing homogeneous transforms
from the base outward, and then decomposes them into the rotation matrices,
positions, joint axes and link-to-joint vectors used by downstream dynamics
code. Everything returned is expressed in the inertial frame.
"""

import logging
from typing import Callable, Dict, Tuple

import jax.numpy as jnp
from flax import struct
from jax import Array

from .core import (
    InsufficientJointVariablesError,
    Joint,
    JointType,
    MalformedModelError,
    RobotModel,
)
from .transforms import se3, so3

logger = logging.getLogger(__name__)


@struct.dataclass
class Kinematics:
    """Per-joint and per-link kinematic quantities in the inertial frame.

    Row ``i`` of every array belongs to joint ``i`` / link ``i``.

    Attributes:
        RJ: (n, 3, 3) joint rotation matrices.
        RL: (n, 3, 3) link rotation matrices.
        rJ: (n, 3) joint positions.
        rL: (n, 3) link (centre-of-mass) positions.
        e: (n, 3) joint rotation/sliding axes.
        g: (n, 3) vectors from each link's parent joint to the link.
    """
    RJ: Array
    RL: Array
    rJ: Array
    rL: Array
    e: Array
    g: Array


def _joint_variable(joint: Joint, qm: Array) -> Array:
    if joint.q_index is None:
        raise MalformedModelError(f"Actuated joint {joint.id} has no q index")
    num_q = qm.shape[0]
    # JAX clamps out-of-range indices, so bounds are checked on the static shape
    if not 0 <= joint.q_index < num_q:
        raise InsufficientJointVariablesError(joint.id, joint.q_index, num_q)
    return qm[joint.q_index]


def _revolute_motion(joint: Joint, qm: Array, dtype) -> Array:
    # Transpose of the elementary rotation; keep it, dynamics code relies on this sense.
    R = so3.inverse(so3.euler_dcm(joint.axis.astype(dtype), _joint_variable(joint, qm)))
    return se3.from_position_and_rotation(jnp.zeros(3, dtype=dtype), R)


def _prismatic_motion(joint: Joint, qm: Array, dtype) -> Array:
    p = joint.axis.astype(dtype) * _joint_variable(joint, qm)
    return se3.from_position_and_rotation(p, jnp.eye(3, dtype=dtype))


def _fixed_motion(joint: Joint, qm: Array, dtype) -> Array:
    return se3.identity(dtype)


_JOINT_MOTIONS: Dict[JointType, Callable[[Joint, Array, object], Array]] = {
    JointType.REVOLUTE: _revolute_motion,
    JointType.PRISMATIC: _prismatic_motion,
    JointType.FIXED: _fixed_motion,
}


def joint_motion(joint: Joint, qm: Array, dtype=None) -> Array:
    """Transform produced by the current value of a joint's variable.

    Revolute joints rotate by ``euler_dcm(axis, q).T``, prismatic joints
    translate by ``axis * q`` and fixed joints contribute the identity.

    Args:
        joint: Joint whose motion is evaluated.
        qm: (n_q,) joint variables.
        dtype: Floating dtype of the result. Defaults to the dtype of ``qm``
               promoted to floating point.

    Returns:
        (4, 4) homogeneous transform.
    """
    qm = jnp.reshape(jnp.asarray(qm), (-1,))
    if dtype is None:
        dtype = jnp.result_type(qm, jnp.float32)
    try:
        motion = _JOINT_MOTIONS[joint.type]
    except KeyError:
        raise MalformedModelError(f"Joint {joint.id} has unknown type {joint.type!r}")
    return motion(joint, qm, dtype)


def forward_transforms(R0: Array, r0: Array, qm: Array, robot: RobotModel) -> Tuple[Array, Array]:
    """Compute the inertial-frame homogeneous transforms of all joints and links.

    Joints are processed strictly in id order. A joint mounted on the base
    is placed relative to the base attachment frame; any other joint is
    placed relative to its parent link, which an earlier joint must already
    have produced.

    Args:
        R0: (3, 3) rotation of the base body with respect to the inertial
            frame. Assumed orthonormal; not re-validated.
        r0: (3,) or (3, 1) position of the base body in the inertial frame.
        qm: (n_q,) or (n_q, 1) joint variables.
        robot: RobotModel describing the tree.

    Returns:
        Tuple ``(TJ, TL)`` of (n, 4, 4) joint and link transforms.

    Raises:
        MalformedModelError: if a joint references a link that has not been
            computed yet, a dangling id, or an unknown joint type.
        InsufficientJointVariablesError: if ``qm`` is too short.
    """
    R0 = jnp.asarray(R0)
    r0 = jnp.reshape(jnp.asarray(r0), (3,))
    qm = jnp.reshape(jnp.asarray(qm), (-1,))
    dtype = jnp.result_type(R0, r0, qm, jnp.float32)

    n = robot.n_links_joints
    if len(robot.links) != n:
        raise MalformedModelError(f"Model has {n} joints but {len(robot.links)} links")
    logger.debug("Evaluating forward kinematics for %d joints", n)

    if n == 0:
        empty = jnp.zeros((0, 4, 4), dtype=dtype)
        return empty, empty

    T0 = se3.multiply(
        se3.from_position_and_rotation(r0.astype(dtype), R0.astype(dtype)),
        robot.base_link.T.astype(dtype),
    )

    TJ = [None] * n
    TL = [None] * n
    for i, joint in enumerate(robot.joints):
        if joint.id != i:
            raise MalformedModelError(f"Joint at position {i} has id {joint.id}")

        if joint.parent_link is None:
            T_parent = T0
        elif 0 <= joint.parent_link < n and TL[joint.parent_link] is not None:
            T_parent = TL[joint.parent_link]
        else:
            raise MalformedModelError(
                f"Joint {i} is attached to link {joint.parent_link}, "
                "which no earlier joint produces"
            )
        TJ[i] = se3.multiply(T_parent, joint.T.astype(dtype))

        T_qm = joint_motion(joint, qm, dtype)

        if not 0 <= joint.child_link < n:
            raise MalformedModelError(f"Joint {i} drives unknown link {joint.child_link}")
        link = robot.links[joint.child_link]
        if link.id != joint.child_link or link.parent_joint != joint.id:
            raise MalformedModelError(
                f"Link {joint.child_link} does not name joint {i} as its parent joint"
            )
        if TL[link.id] is not None:
            raise MalformedModelError(f"Link {link.id} is driven twice")
        TL[link.id] = TJ[i] @ T_qm @ link.T.astype(dtype)

    return jnp.stack(TJ), jnp.stack(TL)


def kinematics(R0: Array, r0: Array, qm: Array, robot: RobotModel) -> Kinematics:
    """Compute the kinematics of the multibody system.

    Note:
        Revolute joints rotate by the transpose of ``so3.euler_dcm``. This
        sign convention matches the spacecraft-manipulator dynamics
        formulation the outputs feed into; check it against the dynamics
        convention you target before changing it.

    Args:
        R0: (3, 3) rotation matrix from the base body to the inertial frame.
        r0: (3,) position of the base body in the inertial frame.
        qm: (n_q,) or (n_q, 1) manipulator joint variables.
        robot: RobotModel describing the tree.

    Returns:
        Kinematics with joint/link rotations and positions, joint axes and
        link-to-joint vectors, all in the inertial frame.

    Example::

        kin = kinematics(jnp.eye(3), jnp.zeros(3), qm, robot)
        kin.rL[i]       # position of link i
        kin.RJ[i]       # rotation matrix of joint i
    """
    TJ, TL = forward_transforms(R0, r0, qm, robot)

    RJ = se3.get_rotation(TJ)
    rJ = se3.get_position(TJ)
    RL = se3.get_rotation(TL)
    rL = se3.get_position(TL)

    if robot.n_links_joints == 0:
        empty = jnp.zeros((0, 3), dtype=TJ.dtype)
        return Kinematics(RJ=RJ, RL=RL, rJ=rJ, rL=rL, e=empty, g=empty)

    axes = jnp.stack([joint.axis for joint in robot.joints]).astype(RJ.dtype)
    e = so3.apply(RJ, axes)

    parent_joints = jnp.array([link.parent_joint for link in robot.links])
    g = rL - rJ[parent_joints]

    return Kinematics(RJ=RJ, RL=RL, rJ=rJ, rL=rL, e=e, g=g)
