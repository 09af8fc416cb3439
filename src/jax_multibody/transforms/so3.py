"""SO(3) rotation helpers in JAX.

This module collects the rotation-matrix operations the kinematics solver
needs: Rodrigues' formula, quaternion conversions and the elementary
axis-angle direction cosine matrix. All functions are pure, JIT-able, and
operate on JAX arrays.

Two conventions coexist here and must not be mixed up:

* ``exp`` and ``from_quaternion`` return *active* rotations (right-hand rule,
  scalar-first quaternions).
* ``quat_dcm`` and ``euler_dcm`` return *passive* direction cosine matrices
  (scalar-last quaternions), i.e. the transpose of the active rotation.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector to skew-symmetric matrix.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def exp(log_r: Array) -> Array:
    """
    SO(3) exponential map: convert axis-angle vector to rotation matrix.

    Implements Rodrigues' formula. The result rotates vectors by ``|log_r|``
    about ``log_r / |log_r|`` following the right-hand rule.

    Args:
        log_r: (..., 3) array of axis-angle vectors

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    angle = jnp.linalg.norm(log_r, axis=-1, keepdims=True)

    # Taylor expansion near zero keeps the normalisation finite
    small_angle = angle < 1e-8
    cos_angle = jnp.where(small_angle, 1.0 - 0.5 * angle**2, jnp.cos(angle))
    sin_angle = jnp.where(small_angle, angle - angle**3 / 6.0, jnp.sin(angle))

    axis = jnp.where(angle > 1e-8, log_r / angle, log_r)
    K = skew_symmetric(axis)

    # R = I + sin(θ) * K + (1 - cos(θ)) * K²
    I = jnp.eye(3, dtype=log_r.dtype)
    I = jnp.broadcast_to(I, log_r.shape[:-1] + (3, 3))

    return (I +
            sin_angle[..., None] * K +
            (1.0 - cos_angle)[..., None] * jnp.matmul(K, K))


def from_quaternion(quaternions: Array) -> Array:
    """
    Convert quaternions to active rotation matrices.

    Args:
        quaternions: (..., 4) array of quaternions in (w, x, y, z) format

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    quaternions = quaternions / jnp.linalg.norm(quaternions, axis=-1, keepdims=True)

    w, x, y, z = jnp.moveaxis(quaternions, -1, 0)

    xx, yy, zz = x*x, y*y, z*z
    wx, wy, wz = w*x, w*y, w*z
    xy, xz, yz = x*y, x*z, y*z

    return jnp.stack([
        jnp.stack([1 - 2*(yy + zz), 2*(xy - wz), 2*(xz + wy)], axis=-1),
        jnp.stack([2*(xy + wz), 1 - 2*(xx + zz), 2*(yz - wx)], axis=-1),
        jnp.stack([2*(xz - wy), 2*(yz + wx), 1 - 2*(xx + yy)], axis=-1)
    ], axis=-2)


def to_quaternion(matrix: Array) -> Array:
    """
    Convert active rotation matrices to quaternions (w, x, y, z).

    Uses Shepperd's method, selecting the best-conditioned branch per
    element so the function stays batch-safe and JIT-friendly.

    Args:
        matrix: (..., 3, 3) array of rotation matrices

    Returns:
        (..., 4) array of quaternions with non-negative scalar part
    """
    m00 = matrix[..., 0, 0]
    m01 = matrix[..., 0, 1]
    m02 = matrix[..., 0, 2]
    m10 = matrix[..., 1, 0]
    m11 = matrix[..., 1, 1]
    m12 = matrix[..., 1, 2]
    m20 = matrix[..., 2, 0]
    m21 = matrix[..., 2, 1]
    m22 = matrix[..., 2, 2]

    trace = m00 + m11 + m22
    eps = jnp.finfo(matrix.dtype).eps

    candidates = [
        (jnp.stack([trace + 1.0, m21 - m12, m02 - m20, m10 - m01], axis=-1),
         1.0 + trace),
        (jnp.stack([m21 - m12, m00 - m11 - m22 + 1.0, m01 + m10, m02 + m20], axis=-1),
         1.0 + m00 - m11 - m22),
        (jnp.stack([m02 - m20, m01 + m10, m11 - m00 - m22 + 1.0, m12 + m21], axis=-1),
         1.0 + m11 - m00 - m22),
        (jnp.stack([m10 - m01, m02 + m20, m12 + m21, m22 - m00 - m11 + 1.0], axis=-1),
         1.0 + m22 - m00 - m11),
    ]
    scaled = [0.5 * q / jnp.sqrt(jnp.maximum(s, eps))[..., None] for q, s in candidates]

    use_trace = trace > 0
    use_x = (~use_trace) & (m00 > m11) & (m00 > m22)
    use_y = (~use_trace) & (~use_x) & (m11 > m22)
    use_z = (~use_trace) & (~use_x) & (~use_y)

    quaternion = sum(
        jnp.where(mask[..., None], q, 0.0)
        for mask, q in zip((use_trace, use_x, use_y, use_z), scaled)
    )

    quaternion = jnp.where(quaternion[..., 0:1] < 0, -quaternion, quaternion)
    return quaternion / jnp.linalg.norm(quaternion, axis=-1, keepdims=True)


def quat_dcm(q: Array) -> Array:
    """
    Direction cosine matrix of a scalar-last quaternion.

    The quaternion ``q = [x, y, z, w]`` describes the attitude of a frame;
    the returned matrix projects vectors expressed in the reference frame
    into that rotated frame (passive convention). It equals the transpose of
    ``from_quaternion([w, x, y, z])``.

    Args:
        q: (..., 4) quaternion in (x, y, z, w) format

    Returns:
        (..., 3, 3) direction cosine matrix
    """
    q1, q2, q3, q4 = jnp.moveaxis(q, -1, 0)

    return jnp.stack([
        jnp.stack([1 - 2*(q2**2 + q3**2), 2*(q1*q2 + q3*q4), 2*(q1*q3 - q2*q4)], axis=-1),
        jnp.stack([2*(q2*q1 - q3*q4), 1 - 2*(q1**2 + q3**2), 2*(q2*q3 + q1*q4)], axis=-1),
        jnp.stack([2*(q3*q1 + q2*q4), 2*(q3*q2 - q1*q4), 1 - 2*(q1**2 + q2**2)], axis=-1)
    ], axis=-2)


def euler_dcm(axis: Array, angle: Array) -> Array:
    """
    Elementary rotation: direction cosine matrix of a rotation about an axis.

    This is the axis-angle primitive used by revolute joints. Its sign
    convention is fixed::

        euler_dcm([0, 0, 1], θ) == [[ cos θ, sin θ, 0],
                                    [-sin θ, cos θ, 0],
                                    [     0,     0, 1]]

    which is ``exp(axis * angle).T``. Revolute joints apply its transpose.

    Args:
        axis: (..., 3) unit rotation axis
        angle: (...) rotation angle in radians

    Returns:
        (..., 3, 3) direction cosine matrix
    """
    half = jnp.asarray(angle)[..., None] / 2.0
    q = jnp.concatenate([axis * jnp.sin(half), jnp.cos(half)], axis=-1)
    return quat_dcm(q)


def inverse(R: Array) -> Array:
    """Inverse of a rotation matrix (its transpose)."""
    return jnp.swapaxes(R, -1, -2)


def apply(R: Array, v: Array) -> Array:
    """
    Apply rotation to vector(s).

    Args:
        R: (..., 3, 3) rotation matrix
        v: (..., 3) or (..., N, 3) vector(s) to rotate

    Returns:
        (..., 3) or (..., N, 3) rotated vector(s)
    """
    if v.ndim == R.ndim - 1:
        return jnp.einsum('...ij,...j->...i', R, v)
    return jnp.einsum('...ij,...nj->...ni', R, v)
