#!/usr/bin/env python3
import argparse
import logging
import sys
from pathlib import Path

from config import Config
from meshnoise.errors import MeshNoiseError
from meshnoise.estimator import NoiseEstimator
from meshnoise.io import ANY_GATEWAY, DatasetSource, fetch_inputs, save_noise_levels
from evaluation.metrics import summarize_noise_levels


def process_gateway(gateway, source, estimator, fetch_cfg, output=None, plot=False):
    logger = logging.getLogger(__name__)
    logger.info("=== Gateway %s ===", gateway)

    topology, link_stats = fetch_inputs(
        source, gateway,
        attempts=fetch_cfg['attempts'],
        backoff_base=fetch_cfg['backoff_base_s'],
        backoff_cap=fetch_cfg['backoff_cap_s'],
    )
    logger.info("Fetched %d topology nodes, %d link stats", len(topology), len(link_stats))
    if not link_stats:
        logger.warning("No link statistics for gateway %s", gateway)

    records = estimator.estimate(topology, link_stats, gateway)

    summary = summarize_noise_levels(records, noise_floor_db=estimator.noise_floor_db)
    logger.info("Sensors: %d, conclusive: %d", summary['count'], summary['conclusive'])
    if summary['mean_db'] is not None:
        logger.info("Noise level mean %.2f dB (min %.2f, max %.2f)",
                    summary['mean_db'], summary['min_db'], summary['max_db'])
    for r in records:
        logger.debug("  sensor %d: %.2f dB", r.sensor_id, r.noise_level)

    if output:
        save_noise_levels(output, records)

    if plot and records:
        try:
            from evaluation.plotting import plot_noise_map
            plot_noise_map(records, topology, title=f"Noise Level Map ({gateway})")
        except Exception as e:
            logger.debug("Noise map plotting failed (non-fatal): %s", e)

    return records


# -------------------------
# CLI Entrypoint
# -------------------------
def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Mesh network noise level estimator")
    p.add_argument("--data-dir", default=None, help="Directory holding topology.json and link_stats.json")
    p.add_argument("--gateway", default=ANY_GATEWAY, help="Gateway name, or 'any' for all sensors")
    p.add_argument("--all-gateways", action="store_true", help="Estimate each listed gateway separately")
    p.add_argument("--output", default=None, help="Write noise levels as JSON (one file per gateway with --all-gateways)")
    p.add_argument("--plot", action="store_true", help="Show the noise level map")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s: %(message)s")
    logger = logging.getLogger(__name__)
    logger.info("Starting noise level estimation")

    config = Config()
    source = DatasetSource.from_config(config, data_dir=args.data_dir)
    estimator = NoiseEstimator.from_config(config)
    fetch_cfg = config.get_section('fetch')

    try:
        if args.all_gateways:
            gateways = source.list_gateways()
            if not gateways:
                logger.warning("No gateways found in %s", source.topology_path)
            for gateway in gateways:
                output = None
                if args.output:
                    out = Path(args.output)
                    output = out.with_name(f"{out.stem}_{gateway}{out.suffix or '.json'}")
                process_gateway(gateway, source, estimator, fetch_cfg, output=output, plot=args.plot)
        else:
            process_gateway(args.gateway, source, estimator, fetch_cfg, output=args.output, plot=args.plot)
    except MeshNoiseError as e:
        logger.error("Aborted: %s", e)
        return 1

    logger.info("Processing complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
