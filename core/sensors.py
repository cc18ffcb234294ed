"""
Sensor Descriptions

Electrode/sensor geometry and concatenation of descriptions that have
been processed separately (e.g. electrodes placed per grid or strip).
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging
import numpy as np


@dataclass
class SensorArray:
    """
    Geometry of a set of electrodes and the channels derived from them.

    Attributes:
        label: Channel labels
        elecpos: (N, 3) electrode positions
        chanpos: (M, 3) channel positions
        unit: Geometrical unit of the positions
        coordsys: Coordinate system of the positions
        labelold: Labels before a montage was applied
        chanposold: Channel positions before a montage was applied
    """
    label: List[str]
    elecpos: np.ndarray
    chanpos: Optional[np.ndarray] = None
    unit: Optional[str] = None
    coordsys: Optional[str] = None
    labelold: Optional[List[str]] = None
    chanposold: Optional[np.ndarray] = None
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        self.label = list(self.label)
        self.elecpos = np.atleast_2d(np.asarray(self.elecpos, dtype=float))
        if self.chanpos is None:
            # bipolar or otherwise re-referenced channels need an explicit chanpos
            if len(self.label) != len(self.elecpos):
                raise ValueError(
                    f"chanpos is required when the number of labels ({len(self.label)}) "
                    f"differs from the number of electrodes ({len(self.elecpos)})"
                )
            self.chanpos = self.elecpos.copy()
        else:
            self.chanpos = np.atleast_2d(np.asarray(self.chanpos, dtype=float))
        if len(self.chanpos) != len(self.label):
            raise ValueError(
                f"Number of channel positions ({len(self.chanpos)}) does not match "
                f"the number of labels ({len(self.label)})"
            )
        if self.chanposold is not None:
            self.chanposold = np.atleast_2d(np.asarray(self.chanposold, dtype=float))

    @property
    def num_channels(self) -> int:
        return len(self.label)


def _common_attribute(sensors: List[SensorArray], name: str) -> Optional[str]:
    values = [getattr(s, name) for s in sensors]
    if values[0] is None:
        logging.warning(f"No {name} information present, assuming it matches")
        return None
    if any(v != values[0] for v in values):
        raise ValueError(f"The {name} of the input sensor descriptions are not equal: {values}")
    return values[0]


def append_sensors(*sensors: SensorArray) -> SensorArray:
    """
    Concatenate multiple sensor descriptions.

    Units and coordinate systems must agree; they are taken from the first
    input. The pre-montage labels and positions are only kept when at least
    one input has them, inputs without them contribute their current values.

    Args:
        *sensors: SensorArray instances to combine

    Returns:
        Combined SensorArray

    Raises:
        ValueError: If no sensors are given or units/coordinate systems differ
    """
    if len(sensors) == 0:
        raise ValueError("At least one sensor description is required")
    for s in sensors:
        if not isinstance(s, SensorArray):
            raise ValueError(f"Expected SensorArray input, got {type(s).__name__}")

    sensors = list(sensors)
    unit = _common_attribute(sensors, 'unit')
    coordsys = _common_attribute(sensors, 'coordsys')

    has_labelold = any(s.labelold is not None for s in sensors)
    has_chanposold = any(s.chanposold is not None for s in sensors)

    combined = SensorArray(
        label=[lbl for s in sensors for lbl in s.label],
        elecpos=np.concatenate([s.elecpos for s in sensors], axis=0),
        chanpos=np.concatenate([s.chanpos for s in sensors], axis=0),
        unit=unit,
        coordsys=coordsys,
    )
    if has_labelold:
        combined.labelold = [
            lbl for s in sensors
            for lbl in (s.labelold if s.labelold is not None else s.label)
        ]
    if has_chanposold:
        combined.chanposold = np.concatenate(
            [s.chanposold if s.chanposold is not None else s.chanpos for s in sensors],
            axis=0
        )

    logging.info(
        f"Appended {len(sensors)} sensor descriptions: "
        f"{combined.num_channels} channels, {len(combined.elecpos)} electrodes"
    )
    return combined
