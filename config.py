import os


class Config:
    """Configuration management for the noise estimator and its data source."""

    def __init__(self):
        self.dataset_base_path = os.getenv("MESHNOISE_DATA_DIR", "mesh_dataset")

        # Section-specific configurations
        self.sections = {
            'model': {
                'snr_min_db': -4.0,
                'snr_max_db': 4.0,
                'snr_tolerance_db': 1e-5,
                'plr_tolerance': 1e-5,
                'max_iterations': 100,
                'reference_frame_length': 20,  # bytes, own-link frames
                'noise_floor_db': -99.0,       # no usable traffic
            },
            'fetch': {
                'attempts': int(os.getenv("MESHNOISE_FETCH_ATTEMPTS", "3")),
                'backoff_base_s': 0.5,
                'backoff_cap_s': 5.0,
            },
            'dataset': {
                'data_dir': self.dataset_base_path,
                'topology_file': 'topology.json',
                'link_stats_file': 'link_stats.json',
                'any_gateway': 'any',
            },
        }

    def get_section(self, name):
        """Get configuration for a named section."""
        return self.sections.get(name, {})
