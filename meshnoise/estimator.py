# meshnoise/estimator.py
import logging

from .compute import NOISE_FLOOR_DB, combine_noise_db, link_noise_db
from .models import NoiseLevelData, Position

logger = logging.getLogger(__name__)


class NoiseEstimator:
    """
    Per-sensor noise level from windowed link counters and mesh topology.

    Each sensor combines two links:
      - own link: frames the sensor received, its no-ACK count as losses,
        its own RSSI, fixed reference frame length
      - parent link: frames its parent transmitted, parent tx - rx as losses,
        the parent's receive RSSI, the parent's average frame length
    Both sides are inverted to a noise power and averaged by traffic volume
    in the linear domain. No traffic on either side gives the noise floor.
    """

    def __init__(self, reference_frame_length=20, noise_floor_db=NOISE_FLOOR_DB,
                 snr_min=-4.0, snr_max=4.0, snr_tol=1e-5, plr_tol=1e-5,
                 max_iter=100):
        self.reference_frame_length = reference_frame_length
        self.noise_floor_db = noise_floor_db
        self.search = dict(snr_min=snr_min, snr_max=snr_max, snr_tol=snr_tol,
                           plr_tol=plr_tol, max_iter=max_iter)

    @classmethod
    def from_config(cls, config):
        model = config.get_section('model')
        return cls(
            reference_frame_length=model['reference_frame_length'],
            noise_floor_db=model['noise_floor_db'],
            snr_min=model['snr_min_db'],
            snr_max=model['snr_max_db'],
            snr_tol=model['snr_tolerance_db'],
            plr_tol=model['plr_tolerance'],
            max_iter=model['max_iterations'],
        )

    def own_contribution(self, stats):
        """(noise_db, traffic) for the sensor's own link, noise None if idle."""
        traffic = stats.mac_rx_total_diff
        if traffic <= 0:
            return None, 0.0
        lost = min(max(stats.mac_tx_noack_diff, 0.0), traffic)
        noise = link_noise_db(traffic, lost, stats.avg_rssi,
                              self.reference_frame_length, **self.search)
        return noise, traffic

    def parent_contribution(self, parent_stats):
        """(noise_db, traffic) for the parent's link, noise None if absent or idle."""
        if parent_stats is None:
            return None, 0.0
        traffic = parent_stats.mac_tx_total_diff
        if traffic <= 0:
            return None, 0.0
        if parent_stats.avg_frame_length <= 0:
            logger.debug("Parent %d reports traffic without frame lengths; ignored",
                         parent_stats.sensor_id)
            return None, 0.0
        lost = min(max(traffic - parent_stats.mac_rx_total_diff, 0.0), traffic)
        noise = link_noise_db(traffic, lost, parent_stats.avg_rx_rssi,
                              parent_stats.avg_frame_length, **self.search)
        return noise, traffic

    def estimate(self, topology, link_stats, gateway):
        """
        Returns one NoiseLevelData per entry of `link_stats`, in the same order.

        `topology` and `link_stats` are fully fetched collections for one
        gateway (or all of them) and one time window.
        """
        link_stats = list(link_stats)
        nodes = {node.sensor_id: node for node in topology}
        stats_by_id = {}
        for stats in link_stats:
            stats_by_id.setdefault(stats.sensor_id, stats)

        results = []
        branches = {'both': 0, 'own': 0, 'parent': 0, 'none': 0}
        for stats in link_stats:
            node = nodes.get(stats.sensor_id)
            if node is None:
                logger.debug("Sensor %d not in topology; no parent, zero position", stats.sensor_id)
                parent_id, position = 0, Position()
            else:
                parent_id, position = node.parent_id, node.position

            parent_stats = stats_by_id.get(parent_id) if parent_id != 0 else None
            if parent_id != 0 and parent_stats is None:
                logger.debug("Parent %d of sensor %d has no link stats", parent_id, stats.sensor_id)

            own = self.own_contribution(stats)
            parent = self.parent_contribution(parent_stats)
            noise_level = combine_noise_db([own, parent], noise_floor_db=self.noise_floor_db)

            branch = ('both' if own[1] > 0 and parent[1] > 0 else
                      'own' if own[1] > 0 else
                      'parent' if parent[1] > 0 else 'none')
            branches[branch] += 1
            logger.debug("Sensor %d: branch=%s noise=%.2f dB", stats.sensor_id, branch, noise_level)

            results.append(NoiseLevelData(
                gateway=gateway,
                sensor_id=stats.sensor_id,
                noise_level=noise_level,
                position=position,
            ))

        logger.info("Estimated noise for %d sensors on %s (both=%d own=%d parent=%d none=%d)",
                    len(results), gateway, branches['both'], branches['own'],
                    branches['parent'], branches['none'])
        return results
