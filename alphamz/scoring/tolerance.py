from dataclasses import dataclass


@dataclass(frozen=True)
class MZTolerance:
    """m/z tolerance given as an absolute width and a relative ppm value.

    The effective tolerance at a given m/z is the larger of both.

    Parameters
    ----------
    mz_tolerance : float
        Absolute tolerance in m/z units.
    ppm_tolerance : float
        Relative tolerance in parts per million.
    """

    mz_tolerance: float
    ppm_tolerance: float

    def __post_init__(self):
        if self.mz_tolerance < 0 or self.ppm_tolerance < 0:
            raise ValueError(
                f"Tolerances must not be negative, got {self.mz_tolerance} m/z and {self.ppm_tolerance} ppm"
            )

    def get_tolerance(self, mz: float) -> float:
        return max(self.mz_tolerance, abs(mz) * self.ppm_tolerance * 1e-6)

    def get_range(self, mz: float) -> tuple[float, float]:
        tolerance = self.get_tolerance(mz)
        return mz - tolerance, mz + tolerance

    def matches(self, mz_a: float, mz_b: float) -> bool:
        return abs(mz_a - mz_b) <= self.get_tolerance(max(mz_a, mz_b))

    def __str__(self) -> str:
        return f"{self.mz_tolerance} m/z or {self.ppm_tolerance} ppm"
