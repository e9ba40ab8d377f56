import numpy as np

from .signal_model import inverse_snr

NOISE_FLOOR_DB = -99.0


def db_to_linear(value_db):
    return 10 ** (np.asarray(value_db, dtype=np.float64) / 10)


def linear_to_db(value_linear):
    return 10 * np.log10(value_linear)


def link_noise_db(tx_count, lost_count, avg_rssi_db, frame_length_bytes, **search_kwargs):
    """
    Noise power (dB) on one link: observed signal minus the SNR implied by
    its loss ratio. `tx_count` must be positive.
    """
    if not tx_count > 0:
        raise ValueError(f"link_noise_db needs tx_count > 0, got {tx_count}")
    snr_db = inverse_snr(lost_count / tx_count, frame_length_bytes, **search_kwargs)
    return float(avg_rssi_db - snr_db)


def combine_noise_db(contributions, noise_floor_db=NOISE_FLOOR_DB):
    """
    Traffic-weighted mean of (noise_db, traffic) pairs, averaged as linear power.

    Pairs with no traffic are ignored. With nothing left the noise floor
    sentinel is returned; a single pair is returned as is.
    """
    usable = [(noise, traffic) for noise, traffic in contributions if traffic > 0]
    if not usable:
        return noise_floor_db
    if len(usable) == 1:
        return float(usable[0][0])

    noise_db = np.array([n for n, _ in usable], dtype=np.float64)
    weights = np.array([t for _, t in usable], dtype=np.float64)
    weights = weights / weights.sum()
    return float(linear_to_db(np.sum(db_to_linear(noise_db) * weights)))
