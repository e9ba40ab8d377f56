"""
Typed records exchanged between the data source and the estimator.

Rows arrive as loosely structured dicts (JSON or database rows); `from_dict`
validates them once at the boundary so the estimator only sees clean values.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict

from .errors import RecordValidationError


def _number(kind, row, key, default=None):
    if key not in row or row[key] is None:
        if default is not None:
            return float(default)
        raise RecordValidationError(kind, row, f"missing '{key}'")
    value = row[key]
    if isinstance(value, bool):
        raise RecordValidationError(kind, row, f"'{key}' is not numeric")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise RecordValidationError(kind, row, f"'{key}' is not numeric") from None
    if math.isnan(value):
        raise RecordValidationError(kind, row, f"'{key}' is NaN")
    return value


def _sensor_id(kind, row, key="sensor_id"):
    value = _number(kind, row, key)
    if not value.is_integer() or value < 0:
        raise RecordValidationError(kind, row, f"'{key}' must be a non-negative integer")
    return int(value)


@dataclass(frozen=True)
class Position:
    lat: float = 0.0
    lng: float = 0.0

    def to_dict(self):
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class TopologyNode:
    """Latest known placement of one sensor in the mesh tree."""
    sensor_id: int
    parent_id: int = 0  # 0: attached directly to the gateway
    position: Position = field(default_factory=Position)
    gateway: str = ""

    @property
    def has_parent(self):
        return self.parent_id != 0

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "TopologyNode":
        pos = row.get("position") or {}
        if not isinstance(pos, dict):
            raise RecordValidationError("topology", row, "'position' must be an object")
        return cls(
            sensor_id=_sensor_id("topology", row),
            parent_id=_sensor_id("topology", row, "parent") if row.get("parent") is not None else 0,
            position=Position(
                lat=_number("topology", pos, "lat", default=0.0),
                lng=_number("topology", pos, "lng", default=0.0),
            ),
            gateway=str(row.get("gateway", "")),
        )


@dataclass(frozen=True)
class LinkStats:
    """
    Windowed averages of one sensor's link counters.

    avg_rssi is the sensor's own transmissions as heard by the receiver,
    avg_rx_rssi what the sensor hears. The *_diff fields are per-interval
    counter deltas averaged over the window.
    """
    sensor_id: int
    gateway: str
    avg_rssi: float
    avg_rx_rssi: float
    mac_tx_total_diff: float
    mac_tx_noack_diff: float
    mac_rx_total_diff: float
    mac_tx_length_total_diff: float

    @property
    def avg_frame_length(self):
        if self.mac_tx_total_diff <= 0:
            return 0.0
        return self.mac_tx_length_total_diff / self.mac_tx_total_diff

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "LinkStats":
        counters = {}
        for key in ("mac_tx_total_diff", "mac_tx_noack_diff",
                    "mac_rx_total_diff", "mac_tx_length_total_diff"):
            counters[key] = _number("link_stats", row, key, default=0.0)
            if counters[key] < 0:
                raise RecordValidationError("link_stats", row, f"'{key}' is negative")
        return cls(
            sensor_id=_sensor_id("link_stats", row),
            gateway=str(row.get("gateway", "")),
            avg_rssi=_number("link_stats", row, "avg_rssi"),
            avg_rx_rssi=_number("link_stats", row, "avg_rx_rssi"),
            **counters,
        )


@dataclass(frozen=True)
class NoiseLevelData:
    gateway: str
    sensor_id: int
    noise_level: float
    position: Position = field(default_factory=Position)

    def to_dict(self):
        return {
            "gateway": self.gateway,
            "sensor_id": self.sensor_id,
            "noise_level": self.noise_level,
            "position": self.position.to_dict(),
        }
