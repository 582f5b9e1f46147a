# palette_dither/colour_convert.py
from __future__ import annotations

"""
Colour conversions and metrics (D65).

Exports:
  rgb_to_linear(srgb)
  linear_to_rgb(linear)
  rgb_to_lab(rgb)
  lab_to_rgb(lab)
  delta_e2000_pair(sample_lab, reference_lab)
  delta_e2000_matrix(sample_lab, reference_lab)

The first CIEDE2000 argument is always the sample (image pixel) and the second
the reference (palette entry). Every call site keeps that order.
"""

import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from .core_types import Lab

# Reference white (D65)
XN, YN, ZN = 0.95047, 1.00000, 1.08883

_EPSILON = 216.0 / 24389.0
_KAPPA = 24389.0 / 27.0

_POW25_7 = 25.0**7


# sRGB <-> linear


def rgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB (non-linear 0..1) to linear RGB (0..1). Vectorised.
    Args:
      srgb: array[...] in 0..1 (float)
    Returns:
      float64 array, same shape
    """
    srgb_f = np.asarray(srgb, dtype=np.float64)
    return np.where(
        srgb_f <= 0.04045, srgb_f / 12.92, ((srgb_f + 0.055) / 1.055) ** 2.4
    )


def linear_to_rgb(linear: np.ndarray) -> np.ndarray:
    """Linear RGB (0..1) to sRGB (0..1). Input is clipped to [0, 1] first."""
    lin = np.clip(np.asarray(linear, dtype=np.float64), 0.0, 1.0)
    return np.where(
        lin <= 0.0031308, lin * 12.92, 1.055 * np.power(lin, 1.0 / 2.4) - 0.055
    )


# sRGB -> Lab (D65)


def rgb_to_lab(rgb: np.ndarray) -> Lab:
    """
    sRGB to CIE Lab (D65).
    Accepts 8-bit channel values [0..255] shaped (...,3) or (...,4); a fourth
    (alpha) channel is ignored. Returns float32 (...,3).
    """
    rgb_f = np.asarray(rgb)[..., :3].astype(np.float64) / 255.0

    r_lin = rgb_to_linear(rgb_f[..., 0])
    g_lin = rgb_to_linear(rgb_f[..., 1])
    b_lin = rgb_to_linear(rgb_f[..., 2])

    # Linear RGB -> XYZ (D65)
    X = 0.4124564 * r_lin + 0.3575761 * g_lin + 0.1804375 * b_lin
    Y = 0.2126729 * r_lin + 0.7151522 * g_lin + 0.0721750 * b_lin
    Z = 0.0193339 * r_lin + 0.1191920 * g_lin + 0.9503041 * b_lin

    x, y, z = X / XN, Y / YN, Z / ZN

    def f(t: np.ndarray) -> np.ndarray:
        return np.where(t > _EPSILON, np.cbrt(t), (_KAPPA * t + 16.0) / 116.0)

    fx, fy, fz = f(x), f(y), f(z)

    out = np.empty(rgb_f.shape, dtype=np.float32)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out


# Lab -> sRGB (D65)


def lab_to_rgb(lab: np.ndarray) -> NDArray[np.uint8]:
    """
    CIE Lab (D65) to 8-bit sRGB. Out-of-gamut values are clipped.
    Shape (...,3) is preserved. Returns uint8.
    """
    lab_f = np.asarray(lab, dtype=np.float64)
    fy = (lab_f[..., 0] + 16.0) / 116.0
    fx = fy + lab_f[..., 1] / 500.0
    fz = fy - lab_f[..., 2] / 200.0

    def finv(t: np.ndarray) -> np.ndarray:
        t3 = t * t * t
        return np.where(t3 > _EPSILON, t3, (116.0 * t - 16.0) / _KAPPA)

    X = finv(fx) * XN
    Y = finv(fy) * YN
    Z = finv(fz) * ZN

    # XYZ (D65) -> linear RGB
    r_lin = 3.2404542 * X - 1.5371385 * Y - 0.4985314 * Z
    g_lin = -0.9692660 * X + 1.8760108 * Y + 0.0415560 * Z
    b_lin = 0.0556434 * X - 0.2040259 * Y + 1.0572252 * Z

    srgb = linear_to_rgb(np.stack([r_lin, g_lin, b_lin], axis=-1))
    return np.clip(np.rint(srgb * 255.0), 0, 255).astype(np.uint8)


# CIEDE2000


def delta_e2000_pair(
    sample_lab: Sequence[float] | NDArray[np.floating],
    reference_lab: Sequence[float] | NDArray[np.floating],
) -> float:
    """
    CIEDE2000 distance between two Lab colours.
    Scalar reference implementation.
    """
    L1, a1, b1 = float(sample_lab[0]), float(sample_lab[1]), float(sample_lab[2])
    L2, a2, b2 = (
        float(reference_lab[0]),
        float(reference_lab[1]),
        float(reference_lab[2]),
    )

    C1 = math.hypot(a1, b1)
    C2 = math.hypot(a2, b2)
    C_bar = 0.5 * (C1 + C2)
    G = 0.5 * (1.0 - math.sqrt((C_bar**7) / (C_bar**7 + _POW25_7)))

    a1p = (1.0 + G) * a1
    a2p = (1.0 + G) * a2
    C1p = math.hypot(a1p, b1)
    C2p = math.hypot(a2p, b2)

    def _hue(a_val: float, b_val: float) -> float:
        if a_val == 0.0 and b_val == 0.0:
            return 0.0
        ang = math.degrees(math.atan2(b_val, a_val))
        return ang + 360.0 if ang < 0.0 else ang

    h1p = _hue(a1p, b1)
    h2p = _hue(a2p, b2)

    dLp = L2 - L1
    dCp = C2p - C1p

    dhp = h2p - h1p
    if C1p * C2p == 0.0:
        dhp = 0.0
    elif dhp > 180.0:
        dhp -= 360.0
    elif dhp < -180.0:
        dhp += 360.0

    dHp = 2.0 * math.sqrt(C1p * C2p) * math.sin(math.radians(dhp / 2.0))

    L_bar = 0.5 * (L1 + L2)
    C_bar_p = 0.5 * (C1p + C2p)

    if C1p * C2p == 0.0:
        h_bar_p = h1p + h2p
    else:
        h_sum = h1p + h2p
        h_diff = abs(h1p - h2p)
        if h_diff <= 180.0:
            h_bar_p = 0.5 * h_sum
        elif h_sum < 360.0:
            h_bar_p = 0.5 * (h_sum + 360.0)
        else:
            h_bar_p = 0.5 * (h_sum - 360.0)

    T = (
        1.0
        - 0.17 * math.cos(math.radians(h_bar_p - 30.0))
        + 0.24 * math.cos(math.radians(2.0 * h_bar_p))
        + 0.32 * math.cos(math.radians(3.0 * h_bar_p + 6.0))
        - 0.20 * math.cos(math.radians(4.0 * h_bar_p - 63.0))
    )

    d_theta = 30.0 * math.exp(-(((h_bar_p - 275.0) / 25.0) ** 2.0))
    R_c = 2.0 * math.sqrt((C_bar_p**7) / (C_bar_p**7 + _POW25_7))

    S_l = 1.0 + (0.015 * ((L_bar - 50.0) ** 2.0)) / math.sqrt(
        20.0 + ((L_bar - 50.0) ** 2.0)
    )
    S_c = 1.0 + 0.045 * C_bar_p
    S_h = 1.0 + 0.015 * C_bar_p * T
    R_t = -math.sin(math.radians(2.0 * d_theta)) * R_c

    kL = kC = kH = 1.0
    dE = math.sqrt(
        (dLp / (kL * S_l)) ** 2
        + (dCp / (kC * S_c)) ** 2
        + (dHp / (kH * S_h)) ** 2
        + R_t * (dCp / (kC * S_c)) * (dHp / (kH * S_h))
    )
    return float(dE)


def _hue_deg(a_val: np.ndarray, b_val: np.ndarray) -> np.ndarray:
    ang = np.degrees(np.arctan2(b_val, a_val))
    ang = np.where(ang < 0.0, ang + 360.0, ang)
    return np.where((a_val == 0.0) & (b_val == 0.0), 0.0, ang)


def delta_e2000_matrix(sample_lab: Lab, reference_lab: Lab) -> NDArray[np.float64]:
    """
    CIEDE2000 for every (sample, reference) pair. Same formula as
    delta_e2000_pair, broadcast with NumPy.

    Args:
      sample_lab: Lab [N,3] (or [3])
      reference_lab: Lab [P,3]
    Returns:
      float64 array [N,P]
    """
    s = np.asarray(sample_lab, dtype=np.float64).reshape(-1, 3)[:, None, :]
    r = np.asarray(reference_lab, dtype=np.float64).reshape(-1, 3)[None, :, :]
    L1, a1, b1 = s[..., 0], s[..., 1], s[..., 2]
    L2, a2, b2 = r[..., 0], r[..., 1], r[..., 2]

    C1 = np.hypot(a1, b1)
    C2 = np.hypot(a2, b2)
    C_bar = 0.5 * (C1 + C2)
    C_bar7 = C_bar**7
    G = 0.5 * (1.0 - np.sqrt(C_bar7 / (C_bar7 + _POW25_7)))

    a1p = (1.0 + G) * a1
    a2p = (1.0 + G) * a2
    C1p = np.hypot(a1p, b1)
    C2p = np.hypot(a2p, b2)

    h1p = _hue_deg(a1p, np.broadcast_to(b1, a1p.shape))
    h2p = _hue_deg(a2p, np.broadcast_to(b2, a2p.shape))

    dLp = L2 - L1
    dCp = C2p - C1p

    chroma_zero = (C1p * C2p) == 0.0
    dhp = h2p - h1p
    dhp = np.where(dhp > 180.0, dhp - 360.0, dhp)
    dhp = np.where(dhp < -180.0, dhp + 360.0, dhp)
    dhp = np.where(chroma_zero, 0.0, dhp)

    dHp = 2.0 * np.sqrt(C1p * C2p) * np.sin(np.radians(dhp / 2.0))

    L_bar = 0.5 * (L1 + L2)
    C_bar_p = 0.5 * (C1p + C2p)

    h_sum = h1p + h2p
    h_diff = np.abs(h1p - h2p)
    h_bar_p = np.where(
        h_diff <= 180.0,
        0.5 * h_sum,
        np.where(h_sum < 360.0, 0.5 * (h_sum + 360.0), 0.5 * (h_sum - 360.0)),
    )
    h_bar_p = np.where(chroma_zero, h_sum, h_bar_p)

    T = (
        1.0
        - 0.17 * np.cos(np.radians(h_bar_p - 30.0))
        + 0.24 * np.cos(np.radians(2.0 * h_bar_p))
        + 0.32 * np.cos(np.radians(3.0 * h_bar_p + 6.0))
        - 0.20 * np.cos(np.radians(4.0 * h_bar_p - 63.0))
    )

    d_theta = 30.0 * np.exp(-(((h_bar_p - 275.0) / 25.0) ** 2.0))
    C_bar_p7 = C_bar_p**7
    R_c = 2.0 * np.sqrt(C_bar_p7 / (C_bar_p7 + _POW25_7))

    S_l = 1.0 + (0.015 * ((L_bar - 50.0) ** 2.0)) / np.sqrt(
        20.0 + ((L_bar - 50.0) ** 2.0)
    )
    S_c = 1.0 + 0.045 * C_bar_p
    S_h = 1.0 + 0.015 * C_bar_p * T
    R_t = -np.sin(np.radians(2.0 * d_theta)) * R_c

    dl = dLp / S_l
    dc = dCp / S_c
    dh = dHp / S_h
    return np.sqrt(dl * dl + dc * dc + dh * dh + R_t * dc * dh)


__all__ = [
    "rgb_to_linear",
    "linear_to_rgb",
    "rgb_to_lab",
    "lab_to_rgb",
    "delta_e2000_pair",
    "delta_e2000_matrix",
]
