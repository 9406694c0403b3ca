"""Prediction of isotope patterns from molecular formulas.

The fine isotope distribution of a formula is enumerated with IsoSpecPy from the isotope tables of the elements.
Isotopologues are generated until `ISOTOPE_PROB_TO_COVER` of the total probability is covered.

The fine pattern is merged at the width the instrument can resolve, normalized and filtered by intensity.

Example
-------

.. code-block:: python

    formula = IonType.parse("[M+H]+").ionize(MolecularFormula.parse("C6H12O6"))
    pattern = IsotopePatternPredictor().predict(formula, min_intensity=1.0, merge_width=0.005)

"""

# native imports
import logging

# third party imports
import IsoSpecPy
import numba as nb
import numpy as np

# alphamz imports
from alphamz.constants.keys import IsotopePatternStatus, Polarity
from alphamz.constants.settings import (
    ELECTRON_MASS,
    ISOTOPE_FINE_MERGE_WIDTH,
    ISOTOPE_PROB_TO_COVER,
)
from alphamz.exceptions import InvalidParameterError
from alphamz.isotopes.elements import get_isotope_distribution
from alphamz.isotopes.formula import MolecularFormula
from alphamz.isotopes.pattern import IsotopePattern
from alphamz.isotopes.resolution import Resolution
from alphamz.utils import USE_NUMBA_CACHING

logger = logging.getLogger()


@nb.njit(cache=USE_NUMBA_CACHING, nogil=True)
def merge_lines(
    masses: np.ndarray, intensities: np.ndarray, width: float
) -> tuple[np.ndarray, np.ndarray]:
    """Merge neighboring lines into intensity weighted composite signals.

    A line starts a new signal if it is more than `width` away from the first line of the current signal.

    Parameters
    ----------

    masses : np.ndarray
        Line positions sorted ascending.

    intensities : np.ndarray
        Line intensities.

    width : float
        Maximum distance of lines merged into one signal.

    Returns
    -------
    np.ndarray
        Intensity weighted positions of the merged signals.

    np.ndarray
        Summed intensities of the merged signals.

    """
    n_lines = len(masses)
    merged_masses = np.zeros(n_lines, dtype=np.float64)
    merged_intensities = np.zeros(n_lines, dtype=np.float64)

    if n_lines == 0:
        return merged_masses, merged_intensities

    n_signals = 0
    signal_start = masses[0]
    weighted_sum = 0.0
    intensity_sum = 0.0

    for i in range(n_lines):
        if masses[i] - signal_start > width:
            merged_masses[n_signals] = _weighted_position(
                weighted_sum, intensity_sum, signal_start
            )
            merged_intensities[n_signals] = intensity_sum
            n_signals += 1
            signal_start = masses[i]
            weighted_sum = 0.0
            intensity_sum = 0.0

        weighted_sum += masses[i] * intensities[i]
        intensity_sum += intensities[i]

    merged_masses[n_signals] = _weighted_position(
        weighted_sum, intensity_sum, signal_start
    )
    merged_intensities[n_signals] = intensity_sum
    n_signals += 1

    return merged_masses[:n_signals], merged_intensities[:n_signals]


@nb.njit(inline="always", cache=USE_NUMBA_CACHING)
def _weighted_position(weighted_sum, intensity_sum, fallback):
    if intensity_sum > 0:
        return weighted_sum / intensity_sum
    return fallback


def formula_distribution(formula: MolecularFormula) -> tuple[np.ndarray, np.ndarray]:
    """Fine isotope distribution of the neutral atoms of a formula, sorted by mass.

    The isotopologues covering `ISOTOPE_PROB_TO_COVER` of the total probability are enumerated by IsoSpecPy,
    using the isotope tables of :mod:`alphamz.isotopes.elements`. Lines closer than `ISOTOPE_FINE_MERGE_WIDTH`
    are merged.

    Raises
    ------
    ValueError
        If the formula is empty or contains an unknown element.

    """
    if formula.is_empty():
        raise ValueError("Can not predict the isotope pattern of an empty formula")

    atom_counts = []
    isotope_masses = []
    isotope_probabilities = []
    for element, count in formula.elements.items():
        masses, abundances = get_isotope_distribution(element)
        atom_counts.append(count)
        isotope_masses.append(masses.tolist())
        isotope_probabilities.append(abundances.tolist())

    distribution = IsoSpecPy.IsoTotalProb(
        prob_to_cover=ISOTOPE_PROB_TO_COVER,
        atomCounts=atom_counts,
        isotopeMasses=isotope_masses,
        isotopeProbabilities=isotope_probabilities,
    )
    lines = np.array([(mass, probability) for mass, probability in distribution], dtype=np.float64)

    order = np.argsort(lines[:, 0], kind="stable")
    return merge_lines(lines[order, 0], lines[order, 1], ISOTOPE_FINE_MERGE_WIDTH)


class IsotopePatternPredictor:
    """Predict isotope patterns of ionized formulas.

    The predictor holds no state, all methods are pure functions of their arguments.
    """

    def _check_min_intensity(self, min_intensity: float):
        if not 0 <= min_intensity <= 100:
            raise InvalidParameterError(
                f"The min_intensity: {min_intensity} is not between 0 and 100"
            )

    def _resolve_charge(
        self, formula: MolecularFormula, charge: int | None, polarity: str | None
    ) -> int:
        charge = formula.charge if charge is None else int(charge)
        if polarity == Polarity.NEGATIVE:
            return -abs(charge)
        if polarity == Polarity.POSITIVE:
            return abs(charge)
        return charge

    def predict_fine_structure(
        self,
        formula: MolecularFormula,
        charge: int | None = None,
        polarity: str | None = None,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Unmerged isotope lines of an ionized formula in m/z, with abundances relative to the total."""
        charge = self._resolve_charge(formula, charge, polarity)
        masses, abundances = formula_distribution(formula)
        mz_values = (masses - charge * ELECTRON_MASS) / max(1, abs(charge))
        return mz_values, abundances

    def _to_pattern(
        self,
        mz_values: np.ndarray,
        abundances: np.ndarray,
        min_intensity: float,
        merge_width: float,
        charge: int,
        description: str,
    ) -> IsotopePattern:
        mz_values, intensities = merge_lines(mz_values, abundances, merge_width)
        intensities = intensities / np.max(intensities) * 100

        # the base peak is always at 100 and survives any valid threshold
        keep = intensities >= min_intensity
        return IsotopePattern(
            mz_values[keep],
            intensities[keep],
            charge,
            status=IsotopePatternStatus.PREDICTED,
            description=description,
        )

    def predict(
        self,
        formula: MolecularFormula,
        min_intensity: float,
        merge_width: float,
        charge: int | None = None,
        polarity: str | None = None,
    ) -> IsotopePattern:
        """Predict the isotope pattern of an ionized formula.

        Parameters
        ----------

        formula : MolecularFormula
            Ionized formula including adduct atoms.

        min_intensity : float
            Signals below this intensity, in percent of the most intense signal, are removed.

        merge_width : float
            Lines within this distance in m/z are merged into one signal.

        charge : int, optional
            Charge of the ion. By default the charge of the formula.

        polarity : str, optional
            One of :class:`alphamz.constants.keys.Polarity`, overrides the sign of the charge.

        Returns
        -------
        IsotopePattern
            Predicted pattern with at least one signal.

        Raises
        ------
        InvalidParameterError
            If `min_intensity` is outside of [0, 100].

        ValueError
            If the formula is empty or contains an unknown element.

        """
        self._check_min_intensity(min_intensity)
        charge = self._resolve_charge(formula, charge, polarity)

        mz_values, abundances = self.predict_fine_structure(formula, charge)
        return self._to_pattern(
            mz_values,
            abundances,
            min_intensity,
            merge_width,
            charge,
            str(formula),
        )

    def predict_for_resolutions(
        self,
        formula: MolecularFormula,
        min_intensity: float,
        resolutions: list[Resolution],
        charge: int | None = None,
        polarity: str | None = None,
    ) -> dict[Resolution, IsotopePattern]:
        """Predict the isotope pattern of an ionized formula as observed at several resolutions.

        The fine structure is computed once and merged at the width of each resolution at the monoisotopic m/z.

        Returns
        -------
        dict[Resolution, IsotopePattern]
            Predicted pattern per resolution, in the order of `resolutions`.

        """
        self._check_min_intensity(min_intensity)
        charge = self._resolve_charge(formula, charge, polarity)

        mz_values, abundances = self.predict_fine_structure(formula, charge)
        reference_mz = mz_values[0]

        return {
            resolution: self._to_pattern(
                mz_values,
                abundances,
                min_intensity,
                resolution.get_width(reference_mz),
                charge,
                str(formula),
            )
            for resolution in resolutions
        }
