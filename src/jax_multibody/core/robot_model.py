"""RobotModel PyTree data structures for a floating-base multibody tree.

A model is a base link plus ``n`` joints and ``n`` links. Joint ``i`` and
link ``i`` sit at position ``i`` of their tuples, and the ids form a
topological order: a joint's parent link is always produced by a joint with
a smaller id. Topology is stored as static fields so JIT traces unroll the
tree; offsets and axes are JAX arrays.
"""

import enum
import logging
from typing import Optional, Tuple

import jax.numpy as jnp
from flax import struct
from jax import Array

from .errors import MalformedModelError

logger = logging.getLogger(__name__)


class JointType(enum.IntEnum):
    """Kinematic behaviour of a joint."""
    FIXED = 0
    REVOLUTE = 1
    PRISMATIC = 2


@struct.dataclass
class BaseLink:
    """Base body of the tree.

    Attributes:
        T: (4, 4) fixed transform from the base body reference frame to its
           structural attachment point.
    """
    T: Array


@struct.dataclass
class Joint:
    """A joint connecting a parent link (or the base) to its child link.

    Attributes:
        id: Position of the joint in ``RobotModel.joints``.
        parent_link: Id of the parent link, or ``None`` when the joint is
                     mounted on the base link.
        child_link: Id of the link driven by this joint.
        type: Revolute, prismatic or fixed.
        q_index: Index of this joint's variable in ``qm``. ``None`` for
                 fixed joints.
        axis: (3,) unit rotation/sliding axis in the joint frame. Fixed
              joints still carry one; it has no kinematic effect.
        T: (4, 4) fixed transform from the parent link frame to the joint
           frame.
    """
    id: int = struct.field(pytree_node=False)
    parent_link: Optional[int] = struct.field(pytree_node=False)
    child_link: int = struct.field(pytree_node=False)
    type: JointType = struct.field(pytree_node=False)
    q_index: Optional[int] = struct.field(pytree_node=False)
    axis: Array
    T: Array

    @property
    def is_actuated(self) -> bool:
        return self.type != JointType.FIXED


@struct.dataclass
class Link:
    """A rigid link hanging from exactly one joint.

    Attributes:
        id: Position of the link in ``RobotModel.links``.
        parent_joint: Id of the joint that drives this link.
        T: (4, 4) fixed transform from the joint frame to the link
           reference (centre-of-mass) frame.
    """
    id: int = struct.field(pytree_node=False)
    parent_joint: int = struct.field(pytree_node=False)
    T: Array


@struct.dataclass
class RobotModel:
    """Immutable PyTree representation of a floating-base kinematic tree."""
    base_link: BaseLink
    joints: Tuple[Joint, ...]
    links: Tuple[Link, ...]

    @property
    def n_links_joints(self) -> int:
        return len(self.joints)

    @property
    def n_q(self) -> int:
        """Number of joint variables (non-fixed joints)."""
        return sum(1 for joint in self.joints if joint.is_actuated)


def validate_model(robot: RobotModel) -> RobotModel:
    """Check every structural invariant of ``robot`` up front.

    The solver detects the same problems lazily while it walks the tree;
    calling this once after building a model reports them before any
    kinematics are evaluated.

    Returns:
        The model itself, so the call can be chained.

    Raises:
        MalformedModelError: on the first violated invariant.
    """
    n = len(robot.joints)
    if len(robot.links) != n:
        raise MalformedModelError(
            f"Model has {n} joints but {len(robot.links)} links"
        )
    if jnp.shape(robot.base_link.T) != (4, 4):
        raise MalformedModelError("Base link offset must have shape (4, 4)")

    driven = set()
    q_indices = set()
    for i, joint in enumerate(robot.joints):
        if joint.id != i:
            raise MalformedModelError(f"Joint at position {i} has id {joint.id}")
        if joint.parent_link is not None and joint.parent_link not in driven:
            raise MalformedModelError(
                f"Joint {i} has parent link {joint.parent_link}, "
                "which is not produced by an earlier joint"
            )
        if not 0 <= joint.child_link < n:
            raise MalformedModelError(
                f"Joint {i} drives unknown link {joint.child_link}"
            )
        if joint.child_link in driven:
            raise MalformedModelError(f"Link {joint.child_link} is driven twice")
        driven.add(joint.child_link)
        if robot.links[joint.child_link].parent_joint != i:
            raise MalformedModelError(
                f"Link {joint.child_link} names joint "
                f"{robot.links[joint.child_link].parent_joint} as parent, "
                f"but is driven by joint {i}"
            )
        if not isinstance(joint.type, JointType):
            raise MalformedModelError(f"Joint {i} has unknown type {joint.type!r}")
        if joint.is_actuated:
            if joint.q_index is None:
                raise MalformedModelError(f"Actuated joint {i} has no q index")
            if joint.q_index in q_indices:
                raise MalformedModelError(
                    f"Joint {i} shares q index {joint.q_index} with another joint"
                )
            q_indices.add(joint.q_index)
        if jnp.shape(joint.axis) != (3,):
            raise MalformedModelError(f"Joint {i} axis must have shape (3,)")
        if jnp.shape(joint.T) != (4, 4):
            raise MalformedModelError(f"Joint {i} offset must have shape (4, 4)")

    for i, link in enumerate(robot.links):
        if link.id != i:
            raise MalformedModelError(f"Link at position {i} has id {link.id}")
        if jnp.shape(link.T) != (4, 4):
            raise MalformedModelError(f"Link {i} offset must have shape (4, 4)")

    logger.debug("Validated robot model with %d joints and %d joint variables", n, robot.n_q)
    return robot
