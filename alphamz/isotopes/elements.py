"""Isotope masses and natural abundances of the chemical elements.

Data is taken from the NIST table shipped with pyteomics.
"""

from functools import lru_cache

import numpy as np
from pyteomics.mass import nist_mass

# deuterium is commonly written as its own element symbol
DEUTERIUM = "D"


def is_known_element(element: str) -> bool:
    if element == DEUTERIUM:
        return True
    return element in nist_mass and any(
        number > 0 and abundance > 0
        for number, (_, abundance) in nist_mass[element].items()
    )


@lru_cache(maxsize=None)
def get_isotope_distribution(element: str) -> tuple[np.ndarray, np.ndarray]:
    """Isotope masses and relative abundances of an element.

    Parameters
    ----------

    element : str
        Element symbol, e.g. `C` or `Na`. `D` denotes pure deuterium.

    Returns
    -------
    np.ndarray
        Read-only isotope masses sorted ascending.

    np.ndarray
        Read-only abundances summing up to 1.

    Raises
    ------
    ValueError
        If the element is unknown or has no stable isotopes.

    """
    if element == DEUTERIUM:
        masses = np.array([nist_mass["H"][2][0]], dtype=np.float64)
        abundances = np.ones(1, dtype=np.float64)
    else:
        if not is_known_element(element):
            raise ValueError(f"Unknown element or element without stable isotopes: '{element}'")

        # key 0 holds the monoisotopic mass and is not an isotope
        isotopes = sorted(
            (isotope_mass, abundance)
            for number, (isotope_mass, abundance) in nist_mass[element].items()
            if number > 0 and abundance > 0
        )
        masses = np.array([isotope_mass for isotope_mass, _ in isotopes], dtype=np.float64)
        abundances = np.array([abundance for _, abundance in isotopes], dtype=np.float64)
        abundances /= np.sum(abundances)

    masses.flags.writeable = False
    abundances.flags.writeable = False
    return masses, abundances


@lru_cache(maxsize=None)
def get_monoisotopic_mass(element: str) -> float:
    """Mass of the most abundant isotope of an element."""
    masses, abundances = get_isotope_distribution(element)
    return float(masses[np.argmax(abundances)])
