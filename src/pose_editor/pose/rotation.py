"""
Euler/quaternion conversion.

Euler triples are degrees about the x, y and z axes. The quaternion for a
triple is ``Rz * Ry * Rx``: x is applied first, then y, then z. Decoding
returns x and z in (-180, 180] and y in [-90, 90], so triples outside those
ranges or at y = +-90 do not survive a round trip unchanged.
"""

import math

from pose_editor.pose.types import IDENTITY_QUATERNION, EulerAngles, Quaternion

_EPSILON = 1e-7


def normalize_quaternion(quat: Quaternion) -> Quaternion:
    """Scale ``quat`` to unit length; a zero quaternion becomes the identity."""
    x, y, z, w = quat
    length = math.sqrt(x * x + y * y + z * z + w * w)
    if length <= 0.0:
        return IDENTITY_QUATERNION
    return (x / length, y / length, z / length, w / length)


def euler_to_quaternion(euler: EulerAngles) -> Quaternion:
    """Build the unit quaternion for an Euler triple given in degrees."""
    half = [math.radians(angle) * 0.5 for angle in euler]
    cx, cy, cz = (math.cos(a) for a in half)
    sx, sy, sz = (math.sin(a) for a in half)

    return (
        sx * cy * cz - cx * sy * sz,
        cx * sy * cz + sx * cy * sz,
        cx * cy * sz - sx * sy * cz,
        cx * cy * cz + sx * sy * sz,
    )


def quaternion_to_euler(quat: Quaternion) -> EulerAngles:
    """Decompose ``quat`` (normalized first) into Euler degrees."""
    x, y, z, w = normalize_quaternion(quat)

    # rotation about x
    num = 2.0 * (y * z + w * x)
    den = w * w - x * x - y * y + z * z
    if abs(num) < _EPSILON and abs(den) < _EPSILON:
        # gimbal lock; fold the whole rotation into x
        angle_x = 2.0 * math.atan2(x, w)
    else:
        angle_x = math.atan2(num, den)

    # rotation about y
    angle_y = math.asin(max(-1.0, min(1.0, 2.0 * (w * y - x * z))))

    # rotation about z
    num = 2.0 * (x * y + w * z)
    den = w * w + x * x - y * y - z * z
    if abs(num) < _EPSILON and abs(den) < _EPSILON:
        angle_z = 0.0
    else:
        angle_z = math.atan2(num, den)

    return (math.degrees(angle_x), math.degrees(angle_y), math.degrees(angle_z))


def canonical_euler(euler: EulerAngles) -> tuple[Quaternion, EulerAngles]:
    """
    Convert ``euler`` to a quaternion and back.

    Returns the quaternion together with the decoded triple, which is what
    gets stored on a bone so conversion drift shows up immediately.
    """
    quat = euler_to_quaternion(euler)
    return quat, quaternion_to_euler(quat)
