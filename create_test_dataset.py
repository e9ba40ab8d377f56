import json
import numpy as np
from pathlib import Path

from meshnoise.signal_model import frame_loss_probability


def create_test_dataset(base_path="mesh_dataset", gateways=("UCONN_GW1", "UCONN_GW2"),
                        sensors_per_gateway=8, seed=0):
    """Create a synthetic mesh dataset (topology.json + link_stats.json)."""

    rng = np.random.default_rng(seed)
    base_path = Path(base_path)
    base_path.mkdir(parents=True, exist_ok=True)

    topology = []
    link_stats = []
    truth = {}
    sensor_id = 1

    for g_idx, gateway in enumerate(gateways):
        ids = list(range(sensor_id, sensor_id + sensors_per_gateway))
        sensor_id += sensors_per_gateway
        center = (41.80 + 0.01 * g_idx, -72.25 + 0.01 * g_idx)

        for k, sid in enumerate(ids):
            # First sensor hangs off the gateway, the rest form a random tree
            parent = 0 if k == 0 else int(rng.choice(ids[:k]))
            topology.append({
                "sensor_id": sid,
                "parent": parent,
                "gateway": gateway,
                "position": {
                    "lat": float(center[0] + rng.normal(0, 0.002)),
                    "lng": float(center[1] + rng.normal(0, 0.002)),
                },
            })

            # Ground truth noise floor and link budget, clear of the -99 dB sentinel
            noise_db = float(rng.uniform(-95, -85))
            snr_db = float(rng.uniform(-2, 3))
            frame_length = int(rng.integers(20, 110))
            rx_rssi = noise_db + snr_db + float(rng.normal(0, 0.5))
            truth[sid] = {"noise_db": noise_db, "snr_db": snr_db}

            # Received frames follow the parent-link loss; no-ACKs are the
            # own-link loss on those frames at the 20 byte reference length
            tx_total = float(rng.integers(50, 500))
            rx_total = tx_total * (1 - frame_loss_probability(snr_db, frame_length))
            own_plr = frame_loss_probability(snr_db, 20)

            link_stats.append({
                "sensor_id": sid,
                "gateway": gateway,
                "avg_rssi": noise_db + snr_db,
                "avg_rx_rssi": rx_rssi,
                "mac_tx_total_diff": tx_total,
                "mac_tx_noack_diff": rx_total * own_plr,
                "mac_rx_total_diff": rx_total,
                "mac_tx_length_total_diff": tx_total * frame_length,
            })

    with open(base_path / "topology.json", 'w') as f:
        json.dump(topology, f, indent=2)
    with open(base_path / "link_stats.json", 'w') as f:
        json.dump(link_stats, f, indent=2)
    with open(base_path / "truth.json", 'w') as f:
        json.dump({str(k): v for k, v in truth.items()}, f, indent=2)

    print(f"Created {base_path} ({len(topology)} sensors)")
    return base_path


if __name__ == "__main__":
    create_test_dataset()
    print("Test dataset created!")
