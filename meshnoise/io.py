import json
import logging
import random
import time
from pathlib import Path

from .errors import DataFetchError, MeshNoiseError, RecordValidationError
from .models import LinkStats, TopologyNode

logger = logging.getLogger(__name__)

ANY_GATEWAY = "any"


def _read_rows(path):
    path = Path(path)
    with open(path, "r") as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise RecordValidationError(path.name, rows, "expected a JSON list")
    return rows


def load_topology(path):
    """
    Load topology.json: a list of {sensor_id, parent, gateway, position{lat,lng}}.
    Returns a list of TopologyNode.
    """
    return [TopologyNode.from_dict(row) for row in _read_rows(path)]


def load_link_stats(path):
    """
    Load link_stats.json: one row of windowed averages per sensor.
    Returns a list of LinkStats in file order.
    """
    return [LinkStats.from_dict(row) for row in _read_rows(path)]


def save_noise_levels(path, records):
    """Write noise level records as a JSON list."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump([r.to_dict() for r in records], f, indent=2)
    logger.info("Saved %d noise levels to %s", len(records), path)
    return path


class DatasetSource:
    """
    Topology and link statistics read from a dataset directory.

    The directory holds topology.json and link_stats.json; a gateway of
    "any" disables the gateway filter.
    """

    def __init__(self, data_dir, topology_file="topology.json",
                 link_stats_file="link_stats.json"):
        self.data_dir = Path(data_dir)
        self.topology_path = self.data_dir / topology_file
        self.link_stats_path = self.data_dir / link_stats_file

    @classmethod
    def from_config(cls, config, data_dir=None):
        ds = config.get_section('dataset')
        return cls(data_dir or ds['data_dir'],
                   topology_file=ds['topology_file'],
                   link_stats_file=ds['link_stats_file'])

    def list_gateways(self):
        """Distinct gateway names seen in the topology, in first-seen order."""
        try:
            nodes = load_topology(self.topology_path)
        except MeshNoiseError:
            raise
        except (OSError, ValueError) as e:
            raise DataFetchError(f"could not list gateways: {e}") from e
        seen = {}
        for node in nodes:
            if node.gateway:
                seen.setdefault(node.gateway, None)
        return list(seen)

    def fetch_topology(self, gateway=ANY_GATEWAY):
        nodes = load_topology(self.topology_path)
        if gateway == ANY_GATEWAY:
            return nodes
        return [n for n in nodes if n.gateway == gateway]

    def fetch_link_stats(self, gateway=ANY_GATEWAY):
        stats = load_link_stats(self.link_stats_path)
        if gateway == ANY_GATEWAY:
            return stats
        return [s for s in stats if s.gateway == gateway]


def fetch_inputs(source, gateway=ANY_GATEWAY, attempts=3, backoff_base=0.5,
                 backoff_cap=5.0, sleep=time.sleep):
    """
    Fetch (topology, link_stats) for one gateway, retrying with exponential backoff.

    Both collections are returned together or not at all. Malformed rows are
    not retried. Raises DataFetchError once attempts are exhausted.
    """
    attempts = max(1, int(attempts))
    for attempt in range(1, attempts + 1):
        try:
            topology = source.fetch_topology(gateway)
            link_stats = source.fetch_link_stats(gateway)
            return topology, link_stats
        except MeshNoiseError:
            raise
        except (OSError, ValueError) as e:
            if attempt >= attempts:
                logger.error("Fetch failed (attempt %d/%d): %s", attempt, attempts, e)
                raise DataFetchError(f"could not fetch inputs for gateway '{gateway}': {e}") from e
            delay = min(backoff_base * (2 ** (attempt - 1)), backoff_cap)
            delay += random.uniform(0, delay * 0.1)
            logger.warning("Fetch failed (attempt %d/%d), retrying in %.2fs: %s",
                           attempt, attempts, delay, e)
            sleep(delay)
