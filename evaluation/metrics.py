import numpy as np

from meshnoise.compute import NOISE_FLOOR_DB
from meshnoise.signal_model import frame_loss_probability


def summarize_noise_levels(records, noise_floor_db=NOISE_FLOOR_DB):
    """Count, conclusive count and mean/min/max over conclusive noise levels."""

    levels = np.array([r.noise_level for r in records], dtype=np.float64)
    conclusive = levels[levels != noise_floor_db]

    summary = {
        'count': int(levels.size),
        'conclusive': int(conclusive.size),
        'mean_db': None,
        'min_db': None,
        'max_db': None,
    }
    # If nothing was measured there is nothing to average
    if conclusive.size == 0:
        return summary

    summary['mean_db'] = float(np.mean(conclusive))
    summary['min_db'] = float(np.min(conclusive))
    summary['max_db'] = float(np.max(conclusive))
    return summary


def loss_curve(snr_range, frame_length_bytes):
    """Frame loss probability across an SNR range (dB)."""
    snr_range = np.asarray(snr_range, dtype=np.float64)
    return np.array([frame_loss_probability(s, frame_length_bytes) for s in snr_range])
