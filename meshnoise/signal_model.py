# meshnoise/signal_model.py
import numpy as np
from scipy.special import comb, erfc

# Empirical correction for the radio's modulation/coding scheme.
BER_CORRECTION = 1.45

# Bits per FEC reference block.
BLOCK_BITS = 32

# Probability that i bit errors in a 32-bit block defeat FEC, indexed by i.
FEC_FAILURE_TABLE = np.array(
    [0.0] * 6
    + [0.0020, 0.0134, 0.0523, 0.1498, 0.3479, 0.6496, 0.9156, 0.9968]
    + [1.0] * (BLOCK_BITS - 13)
)

SNR_MIN_DB = -4.0
SNR_MAX_DB = 4.0
SNR_TOLERANCE_DB = 1e-5
PLR_TOLERANCE = 1e-5
MAX_ITERATIONS = 100

_ERROR_COUNTS = np.arange(1, BLOCK_BITS + 1)
_BLOCK_COMBINATIONS = comb(BLOCK_BITS, _ERROR_COUNTS, exact=False)


def fec_failure_probability(n_errors):
    """Probability that `n_errors` bit errors in one block are uncorrectable."""
    if n_errors <= 0:
        return 0.0
    return float(FEC_FAILURE_TABLE[min(int(n_errors), BLOCK_BITS)])


def bit_error_rate(snr_db):
    """BER implied by an SNR in dB."""
    snr_linear = 10 ** (snr_db / 10)
    return 0.5 * erfc(np.sqrt(snr_linear)) * BER_CORRECTION


def frame_loss_probability(snr_db, frame_length_bytes):
    """
    Probability that a frame of `frame_length_bytes` is lost at `snr_db`.

    The uncorrectable-block probability of one 32-bit reference block is
    extrapolated to the frame as 2 * length independent blocks.
    """
    ber = bit_error_rate(snr_db)
    block_fail = np.sum(
        _BLOCK_COMBINATIONS
        * ber ** _ERROR_COUNTS
        * (1 - ber) ** (BLOCK_BITS - _ERROR_COUNTS)
        * FEC_FAILURE_TABLE[_ERROR_COUNTS]
    )
    return float(1 - (1 - block_fail) ** (2 * frame_length_bytes))


def inverse_snr(target_plr, frame_length_bytes,
                snr_min=SNR_MIN_DB, snr_max=SNR_MAX_DB,
                snr_tol=SNR_TOLERANCE_DB, plr_tol=PLR_TOLERANCE,
                max_iter=MAX_ITERATIONS):
    """
    Recover the SNR (dB) at which `frame_loss_probability` equals `target_plr`.

    Bisection over [snr_min, snr_max]; loss decreases as SNR grows. The loss
    match is scaled by the target's distance from 0 or 1 so the flat tails of
    the curve still resolve to the right SNR. Targets outside the reachable
    range return the nearest bound.

    Returns:
        snr_db (float)
    """
    if np.isnan(target_plr):
        raise ValueError("target_plr is NaN")
    target = min(max(float(target_plr), 0.0), 1.0)
    match_tol = plr_tol * min(target, 1.0 - target)

    lo, hi = snr_min, snr_max
    for _ in range(max_iter):
        mid = 0.5 * (lo + hi)
        current = frame_loss_probability(mid, frame_length_bytes)
        if abs(target - current) <= match_tol:
            return mid
        if target > current:
            hi = mid
        else:
            lo = mid
        if hi - lo <= snr_tol:
            break
    return 0.5 * (lo + hi)
