"""
Color matrices for CSS filter operators.

Each operator is a 3x4 affine matrix over 0..255 RGB, applied with
Image.convert(matrix=...). Values are clamped after every operator, the same
way a chain of CSS filter functions clamps between steps.
"""

from __future__ import annotations

import math

from PIL import Image

from .models import FilterOp

Matrix = tuple[float, float, float, float, float, float, float, float, float, float, float, float]


def _linear(m: tuple[float, ...], offset: float = 0.0) -> Matrix:
    return (
        m[0], m[1], m[2], offset,
        m[3], m[4], m[5], offset,
        m[6], m[7], m[8], offset,
    )  # fmt: skip


def brightness_matrix(amount: float) -> Matrix:
    return _linear((amount, 0, 0, 0, amount, 0, 0, 0, amount))


def contrast_matrix(amount: float) -> Matrix:
    return _linear((amount, 0, 0, 0, amount, 0, 0, 0, amount), 127.5 * (1 - amount))


def saturate_matrix(amount: float) -> Matrix:
    s = amount
    return _linear(
        (
            0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s,
            0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s,
            0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s,
        )
    )  # fmt: skip


def grayscale_matrix(amount: float) -> Matrix:
    a = 1 - min(max(amount, 0.0), 1.0)
    return _linear(
        (
            0.2126 + 0.7874 * a, 0.7152 - 0.7152 * a, 0.0722 - 0.0722 * a,
            0.2126 - 0.2126 * a, 0.7152 + 0.2848 * a, 0.0722 - 0.0722 * a,
            0.2126 - 0.2126 * a, 0.7152 - 0.7152 * a, 0.0722 + 0.9278 * a,
        )
    )  # fmt: skip


def sepia_matrix(amount: float) -> Matrix:
    a = 1 - min(max(amount, 0.0), 1.0)
    return _linear(
        (
            0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a,
            0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a,
            0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a,
        )
    )  # fmt: skip


def hue_rotate_matrix(degrees: float) -> Matrix:
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return _linear(
        (
            0.213 + c * 0.787 - s * 0.213,
            0.715 - c * 0.715 - s * 0.715,
            0.072 - c * 0.072 + s * 0.928,
            0.213 - c * 0.213 + s * 0.143,
            0.715 + c * 0.285 + s * 0.140,
            0.072 - c * 0.072 - s * 0.283,
            0.213 - c * 0.213 - s * 0.787,
            0.715 - c * 0.715 + s * 0.715,
            0.072 + c * 0.928 + s * 0.072,
        )
    )


_BUILDERS = {
    "brightness": brightness_matrix,
    "contrast": contrast_matrix,
    "saturate": saturate_matrix,
    "grayscale": grayscale_matrix,
    "sepia": sepia_matrix,
    "hue-rotate": hue_rotate_matrix,
}

# Amount at which each operator leaves pixels unchanged.
_IDENTITY = {
    "brightness": 1.0,
    "contrast": 1.0,
    "saturate": 1.0,
    "grayscale": 0.0,
    "sepia": 0.0,
    "hue-rotate": 0.0,
}


def is_identity(op: FilterOp) -> bool:
    return math.isclose(op.amount, _IDENTITY[op.name])


def apply_ops(image: Image.Image, ops: list[FilterOp]) -> Image.Image:
    """
    Apply filter operators in order to an RGBA image.

    Alpha is carried through untouched. Identity operators are skipped so an
    all-identity stack returns the pixels unchanged.
    """
    active = [op for op in ops if not is_identity(op)]
    if not active:
        return image

    alpha = image.getchannel("A") if image.mode == "RGBA" else None
    rgb = image.convert("RGB")
    for op in active:
        rgb = rgb.convert("RGB", _BUILDERS[op.name](op.amount))
    if alpha is None:
        return rgb
    rgb.putalpha(alpha)
    return rgb
