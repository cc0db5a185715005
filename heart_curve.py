# heart_curve.py

import numpy as np
import numba
from constants import HEART_SIZE


@numba.jit(nopython=True)
def heart_xy(t, heart_size):
    """
    Numba-accelerated scalar form of the heart curve, called from inside the
    simulation kernel. Returns an (x, y) tuple.
    """
    s = np.sin(t)
    x = 16.0 * s * s * s
    y = 13.0 * np.cos(t) - 5.0 * np.cos(2.0 * t) - 2.0 * np.cos(3.0 * t) - np.cos(4.0 * t)
    scale = heart_size / 16.0
    return x * scale, y * scale


def heart_point(t, heart_size: float = HEART_SIZE) -> np.ndarray:
    """
    Maps a curve parameter to a point on the parametric heart curve.

        x(t) = 16 sin(t)^3
        y(t) = 13 cos(t) - 5 cos(2t) - 2 cos(3t) - cos(4t)

    scaled by heart_size / 16. The curve is periodic in t with period 2*pi,
    but any real value is accepted.

    Data Contract:
    - Inputs:
        - t (float or np.ndarray): Curve parameter(s).
        - heart_size (float): Overall size of the curve.
    - Outputs: np.ndarray of shape (2,) for a scalar t, or t.shape + (2,).
    - Side Effects: None.
    """
    t = np.asarray(t, dtype=float)
    x = 16.0 * np.sin(t) ** 3
    y = 13.0 * np.cos(t) - 5.0 * np.cos(2.0 * t) - 2.0 * np.cos(3.0 * t) - np.cos(4.0 * t)
    return np.stack((x, y), axis=-1) * (heart_size / 16.0)
