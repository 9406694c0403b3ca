from dataclasses import dataclass

from alphamz.scoring.tolerance import MZTolerance


@dataclass(frozen=True)
class Resolution:
    """Spectral resolution given either as resolving power or as fixed m/z width.

    Exactly one of both must be set. Use :meth:`from_resolving_power` or :meth:`from_width` to create instances.

    Parameters
    ----------
    resolving_power : float, optional
        Resolving power R, the width at mass m is m / R.
    width : float, optional
        Fixed width in m/z units, independent of the mass.
    """

    resolving_power: float | None = None
    width: float | None = None

    def __post_init__(self):
        if (self.resolving_power is None) == (self.width is None):
            raise ValueError(
                "Exactly one of resolving_power and width must be set for a resolution"
            )
        value = self.resolving_power if self.width is None else self.width
        if not value > 0:
            raise ValueError(f"Resolution must be positive, got {value}")

    @classmethod
    def from_resolving_power(cls, resolving_power: float) -> "Resolution":
        return cls(resolving_power=float(resolving_power))

    @classmethod
    def from_width(cls, width: float) -> "Resolution":
        return cls(width=float(width))

    @classmethod
    def from_config(cls, entry: dict) -> "Resolution":
        """Create from a config entry like `{width: 0.001}` or `{resolving_power: 60000}`."""
        if "width" in entry:
            return cls.from_width(entry["width"])
        if "resolving_power" in entry:
            return cls.from_resolving_power(entry["resolving_power"])
        raise ValueError(f"Resolution entry needs 'width' or 'resolving_power', got {entry}")

    def get_width(self, mz: float) -> float:
        """Absolute width in m/z units at `mz`."""
        if self.width is not None:
            return self.width
        return abs(mz) / self.resolving_power

    def get_ppm(self, mz: float) -> float:
        """Width relative to `mz` in parts per million."""
        if self.width is not None:
            return self.width / abs(mz) * 1e6
        return 1e6 / self.resolving_power

    def to_tolerance(self, mz: float) -> MZTolerance:
        return MZTolerance(self.get_width(mz), self.get_ppm(mz))

    def __str__(self) -> str:
        if self.width is not None:
            return f"{self.width} m/z"
        return f"R={self.resolving_power:g}"
