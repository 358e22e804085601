"""Autocorrelation of the rectified onset envelope."""

import numpy as np
from scipy.signal import correlate


def autocorrelate(
    envelope: np.ndarray,
    max_lag: int = 1000,
    method: str = "auto",
) -> np.ndarray:
    """Biased autocorrelation over lags ``0 .. min(len, max_lag) - 1``.

    Each lag is normalized by its overlap count ``len - lag``. *method* is
    passed to :func:`scipy.signal.correlate` ("direct", "fft" or "auto").
    """
    x = np.asarray(envelope, dtype=np.float64)
    n = len(x)
    if n == 0:
        return np.zeros(0, dtype=np.float64)

    n_lags = min(n, max_lag)
    full = correlate(x, x, mode="full", method=method)
    # zero lag sits at index n - 1
    sums = full[n - 1:n - 1 + n_lags]

    counts = (n - np.arange(n_lags)).astype(np.float64)
    acf = np.zeros(n_lags, dtype=np.float64)
    np.divide(sums, counts, out=acf, where=counts > 0)
    return acf
