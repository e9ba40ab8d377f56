import matplotlib.pyplot as plt
import numpy as np

from .metrics import loss_curve


def plot_noise_map(records, topology=None, title="Noise Level Map", show=True):
    """Plot sensor positions colored by noise level, with parent links."""

    fig = plt.figure(figsize=(8, 6))

    if topology:
        by_id = {n.sensor_id: n for n in topology}
        for node in topology:
            parent = by_id.get(node.parent_id)
            if parent is None:
                continue
            plt.plot([node.position.lng, parent.position.lng],
                     [node.position.lat, parent.position.lat],
                     color='0.7', linewidth=0.8, zorder=1)

    lngs = [r.position.lng for r in records]
    lats = [r.position.lat for r in records]
    levels = [r.noise_level for r in records]
    sc = plt.scatter(lngs, lats, c=levels, cmap='viridis', zorder=2)
    for r in records:
        plt.annotate(str(r.sensor_id), (r.position.lng, r.position.lat), fontsize=8)

    plt.colorbar(sc, label='Noise level (dB)')
    plt.xlabel('Longitude')
    plt.ylabel('Latitude')
    plt.title(title)
    plt.grid(True)
    if show:
        plt.show()
    return fig


def plot_loss_curve(frame_lengths=(20, 100), snr_range=None, title="Frame Loss vs SNR", show=True):
    """Plot frame loss probability against SNR for a few frame lengths."""

    if snr_range is None:
        snr_range = np.linspace(-4, 4, 161)

    fig = plt.figure(figsize=(10, 6))

    for length in frame_lengths:
        plt.semilogy(snr_range, loss_curve(snr_range, length), label=f'{length} bytes')

    plt.xlabel('SNR (dB)')
    plt.ylabel('Frame loss probability')
    plt.title(title)
    plt.grid(True)
    plt.legend()
    if show:
        plt.show()
    return fig
