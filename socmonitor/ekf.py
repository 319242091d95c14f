"""Extended Kalman filter estimating state of charge from the cell model."""

from dataclasses import dataclass, field

import numpy as np

from socmonitor.battery_model import battery_model

DEFAULT_NC = 1.425
DEFAULT_X = ((1.0,), (0.0,))
DEFAULT_P = ((0.950000073892419, 0.0), (0.0, 9.999996034254936))
DEFAULT_Q = ((9.999944378671664e-08, 0.0), (0.0, 9.999998929097178))
DEFAULT_R = 7.999987139962964


def _column(x):
    return np.array(x, dtype=float).reshape(2, 1)


def _matrix(m):
    return np.array(m, dtype=float).reshape(2, 2)


def _clamp_soc(value):
    if value >= 1:
        value = 1.0
    if value <= 0:
        value = 0.0
    return value


def apriori(a, b, current, x, q, p):
    """Prediction step; returns the new state column and covariance."""
    a = _matrix(a)
    b = np.array(b, dtype=float).reshape(2, 1)
    x_new = a @ _column(x) + b * current
    p_new = a @ _matrix(p) @ a.T + _matrix(q)
    return x_new, p_new


def aposteriori(x, p, c, r, error):
    """Correction step; returns the new state, covariance and Kalman gain.

    Raises ZeroDivisionError when the innovation covariance is zero.
    """
    c = np.array(c, dtype=float).reshape(1, 2)
    p = _matrix(p)
    pct = p @ c.T
    innovation = float(((c @ p) @ c.T)[0, 0]) + r
    if innovation == 0:
        raise ZeroDivisionError("innovation covariance is zero")
    kg = pct / innovation
    x_new = _column(x) + kg * error
    p_new = (np.eye(2) - kg @ c) @ p
    return x_new, p_new, kg


@dataclass(eq=False)
class EkfResult:
    """Outcome of one filter iteration."""

    x: np.ndarray
    p: np.ndarray
    kg: np.ndarray
    vt: float
    vt_error: float

    @property
    def soc(self):
        return float(self.x[0, 0])


def ekf_soc_opt(current, voltage, temperature, nc, x, p, q, r):
    """Run one predict/correct cycle; ``nc`` is given in tenths of Ah."""
    x = _column(x)
    p = _matrix(p)
    q = _matrix(q)

    model = battery_model(current, float(x[1, 0]), temperature, float(x[0, 0]), nc / 10)
    vt_error = voltage - model.vt

    x, p = apriori(model.a, model.b, current, x, q, p)
    x[0, 0] = _clamp_soc(x[0, 0])

    x, p, kg = aposteriori(x, p, model.c, r, vt_error)
    x[0, 0] = _clamp_soc(x[0, 0])

    return EkfResult(x=x, p=p, kg=kg, vt=model.vt, vt_error=vt_error)


@dataclass(eq=False)
class SocEstimator:
    """Keeps filter state between measurements."""

    nc: float = DEFAULT_NC
    r: float = DEFAULT_R
    x: np.ndarray = field(default_factory=lambda: _column(DEFAULT_X))
    p: np.ndarray = field(default_factory=lambda: _matrix(DEFAULT_P))
    q: np.ndarray = field(default_factory=lambda: _matrix(DEFAULT_Q))
    kg: np.ndarray = field(default_factory=lambda: np.zeros((2, 1)))
    vt: float = 0.0
    vt_error: float = 0.0

    def __post_init__(self):
        self.x = _column(self.x)
        self.p = _matrix(self.p)
        self.q = _matrix(self.q)
        self.kg = _column(self.kg)

    @property
    def soc(self):
        return float(self.x[0, 0])

    def step(self, current, voltage, temperature):
        """Feed one measurement set and update the stored state."""
        result = ekf_soc_opt(current, voltage, temperature, self.nc, self.x, self.p, self.q, self.r)
        self.x = result.x
        self.p = result.p
        self.kg = result.kg
        self.vt = result.vt
        self.vt_error = result.vt_error
        return result