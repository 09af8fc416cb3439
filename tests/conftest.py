"""Shared robot models for the test suite."""

import jax.numpy as jnp
import pytest

from jax_multibody.core import BaseLink, Joint, JointType, Link, RobotModel
from jax_multibody.transforms import se3, so3


def offset(xyz=(0.0, 0.0, 0.0), rotvec=(0.0, 0.0, 0.0)):
    """Fixed offset transform from a translation and an axis-angle vector."""
    return se3.from_position_and_rotation(jnp.array(xyz, dtype=float), so3.exp(jnp.array(rotvec, dtype=float)))


def joint(id, parent_link, type, axis=(0.0, 0.0, 1.0), q_index=None, T=None):
    return Joint(
        id=id,
        parent_link=parent_link,
        child_link=id,
        type=type,
        q_index=q_index,
        axis=jnp.array(axis, dtype=float),
        T=offset() if T is None else T,
    )


def link(id, T=None):
    return Link(id=id, parent_joint=id, T=offset() if T is None else T)


def model(joints, links, base_T=None):
    return RobotModel(
        base_link=BaseLink(T=offset() if base_T is None else base_T),
        joints=tuple(joints),
        links=tuple(links),
    )


@pytest.fixture
def serial_arm():
    """Revolute Z, revolute Y, prismatic X and a fixed tool flange."""
    return model(
        joints=[
            joint(0, None, JointType.REVOLUTE, (0.0, 0.0, 1.0), q_index=0, T=offset((0.0, 0.0, 0.1))),
            joint(1, 0, JointType.REVOLUTE, (0.0, 1.0, 0.0), q_index=1, T=offset((0.0, 0.0, 0.4))),
            joint(2, 1, JointType.PRISMATIC, (1.0, 0.0, 0.0), q_index=2, T=offset((0.6, 0.0, 0.0))),
            joint(3, 2, JointType.FIXED, (0.0, 0.0, 0.0), T=offset((0.1, 0.0, 0.0), (0.0, jnp.pi / 2, 0.0))),
        ],
        links=[
            link(0, offset((0.0, 0.0, 0.2))),
            link(1, offset((0.3, 0.0, 0.0))),
            link(2, offset((0.05, 0.0, 0.0))),
            link(3, offset((0.0, 0.0, 0.02))),
        ],
        base_T=offset((0.0, 0.0, 0.5), (0.0, 0.0, 0.3)),
    )


@pytest.fixture
def branched_tree():
    """Two arms mounted on the base; joint variables stored out of joint order."""
    return model(
        joints=[
            joint(0, None, JointType.REVOLUTE, (0.0, 0.0, 1.0), q_index=1, T=offset((0.5, 0.0, 0.0))),
            joint(1, None, JointType.REVOLUTE, (1.0, 0.0, 0.0), q_index=0, T=offset((-0.5, 0.0, 0.0), (0.0, 0.0, jnp.pi))),
            joint(2, 0, JointType.REVOLUTE, (0.0, 1.0, 0.0), q_index=3, T=offset((0.0, 0.0, 0.3))),
            joint(3, 1, JointType.PRISMATIC, (0.0, 0.0, 1.0), q_index=2, T=offset((0.0, 0.2, 0.0))),
            joint(4, 2, JointType.FIXED, (0.0, 0.0, 1.0), T=offset((0.25, 0.0, 0.0))),
        ],
        links=[
            link(0, offset((0.0, 0.0, 0.15))),
            link(1, offset((0.0, 0.1, 0.0))),
            link(2, offset((0.2, 0.0, 0.0), (0.1, 0.0, 0.0))),
            link(3, offset((0.0, 0.0, 0.05))),
            link(4, offset((0.0, 0.0, 0.01))),
        ],
        base_T=offset((0.0, 0.0, -0.2)),
    )


@pytest.fixture
def fixed_chain():
    """Three fixed joints, no joint variables."""
    return model(
        joints=[
            joint(0, None, JointType.FIXED, T=offset((1.0, 0.0, 0.0), (0.0, 0.0, 0.5))),
            joint(1, 0, JointType.FIXED, T=offset((0.0, 2.0, 0.0), (0.2, 0.0, 0.0))),
            joint(2, 1, JointType.FIXED, T=offset((0.0, 0.0, 3.0))),
        ],
        links=[
            link(0, offset((0.1, 0.0, 0.0))),
            link(1, offset((0.0, 0.1, 0.0), (0.0, 0.3, 0.0))),
            link(2, offset((0.0, 0.0, 0.1))),
        ],
        base_T=offset((0.0, 0.0, 1.0)),
    )
