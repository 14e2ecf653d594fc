import math

import numpy as np

__all__ = ["QuantizedVariable", "shift_polynomial"]


def shift_polynomial(coeffs: np.ndarray, dt: float) -> np.ndarray:
    """
    Re-expand a polynomial around a new origin.

    Args:
        coeffs: Coefficients c_0, ..., c_n of the polynomial sum_j c_j * s ** j.
        dt: Offset of the new origin.

    Returns:
        The coefficients of the same polynomial as a function of s' = s - dt.
    """
    n = len(coeffs)
    shifted = np.zeros(n)
    for k in range(n):
        for j in range(k, n):
            shifted[k] += coeffs[j] * math.comb(j, k) * dt ** (j - k)
    return shifted


class QuantizedVariable:
    """
    A single state component of a quantized state system.

    The component keeps two polynomial trajectories:

        - the state trajectory x(t) of degree n, a Taylor expansion around time tx,
        - the quantized trajectory q(t) of degree n - 1 around time tq, which is what the
          other components see when they evaluate the right-hand side.

    Whenever x drifts away from q by the quantum dq, the component fires an event: q is reset
    to the leading n Taylor coefficients of x. Between two events of a component, its quantized
    value does not jump.
    """

    def __init__(self, index: int, order: int, dq: float, value: float, t: float):
        """
        QuantizedVariable constructor.

        Args:
            index: Position of the component in the state vector.
            order: QSS order n, 1 to 3.
            dq: Quantum, the width of a quantization band.
            value: Initial value of the component.
            t: Initial time.
        """
        self.index = index
        self.order = order
        self.dq = float(dq)

        self.x = np.zeros(order + 1)
        self.x[0] = value
        self.tx = t

        self.q = np.zeros(order)
        self.q[0] = value
        self.tq = t

        self.next_time = np.inf
        self.num_events = 0

    def __repr__(self):
        return "QuantizedVariable(index={0}, order={1}, x={2}, q={3}, next_time={4})".format(
            self.index, self.order, self.x[0], self.q[0], self.next_time)

    def value(self, t: float) -> float:
        """State trajectory x evaluated at time t."""
        return float(np.polynomial.polynomial.polyval(t - self.tx, self.x))

    def quantized_value(self, t: float) -> float:
        """Quantized trajectory q evaluated at time t."""
        return float(np.polynomial.polynomial.polyval(t - self.tq, self.q))

    def advance(self, t: float):
        """Re-expand the state trajectory around time t."""
        if t != self.tx:
            self.x = shift_polynomial(self.x, t - self.tx)
            self.tx = t

    def requantize(self, t: float, count: bool = True):
        """
        Reset the quantized trajectory to the state trajectory at time t.

        Args:
            t: Current time.
            count: Whether the requantization is a quantization event.
        """
        self.advance(t)
        self.q = self.x[:self.order].copy()
        self.tq = t
        if count:
            self.num_events += 1

    def update_derivatives(self, t: float, taylor_coeffs: np.ndarray):
        """
        Replace the derivative part of the state trajectory at time t.

        Args:
            t: Current time.
            taylor_coeffs: Taylor coefficients of orders 1 to n, i.e. f, f' / 2 and f'' / 6
             of the right-hand side along the quantized trajectories.
        """
        self.advance(t)
        self.x[1:] = taylor_coeffs

    def compute_next_time(self, t: float) -> float:
        """
        Predict the time of the next quantization event of this component.

        The event time is the smallest s >= 0 with |x(t + s) - q(t + s)| = dq. If the difference
        never reaches the quantum, the next event time is infinite.

        Returns:
            The absolute predicted event time, which is also stored in ``next_time``.
        """
        self.advance(t)

        diff = self.x.copy()
        diff[:self.order] -= shift_polynomial(self.q, t - self.tq)

        if abs(diff[0]) >= self.dq:
            self.next_time = t
            return t

        candidates = []
        for sign in (1., -1.):
            shifted = diff.copy()
            shifted[0] -= sign * self.dq
            # np.roots expects the highest degree coefficient first
            roots = np.roots(shifted[::-1])
            candidates.extend(r.real for r in roots
                              if abs(r.imag) <= 1e-12 * max(1., abs(r.real)) and r.real >= 0)

        self.next_time = t + min(candidates) if candidates else np.inf
        return self.next_time
