"""Molecular formulas with exact equality, used as keys for caching isotope patterns."""

import re

from pyteomics.auxiliary import PyteomicsError
from pyteomics.mass import Composition

from alphamz.constants.settings import ELECTRON_MASS
from alphamz.isotopes.elements import DEUTERIUM, get_monoisotopic_mass

# innermost group in parentheses with an optional multiplier
_GROUP_PATTERN = re.compile(r"\(([^()]*)\)(\d*)")

# pyteomics writes explicit isotopes as H[2]
_ISOTOPE_ALIASES = {"H[2]": DEUTERIUM}


def _composition(formula: str) -> Composition:
    try:
        return Composition(formula=formula)
    except PyteomicsError as e:
        raise ValueError(f"Invalid formula '{formula}'") from e


def _expand_group(match: re.Match) -> str:
    group = _composition(match.group(1)) * (int(match.group(2)) if match.group(2) else 1)
    return "".join(f"{element}{count}" for element, count in group.items())


def _parse_elements(formula: str) -> dict[str, int]:
    """Parse a formula string with optional parentheses and multipliers into element counts.

    Groups in parentheses are expanded from the inside out, flat formulas are parsed by pyteomics.
    """
    flat = "".join(formula.split())
    expanded = _GROUP_PATTERN.sub(_expand_group, flat)
    while expanded != flat:
        flat = expanded
        expanded = _GROUP_PATTERN.sub(_expand_group, flat)

    if "(" in flat or ")" in flat:
        raise ValueError(f"Unbalanced parentheses in formula '{formula}'")

    elements = {}
    for element, count in _composition(flat).items():
        element = _ISOTOPE_ALIASES.get(element, element)
        if "[" in element:
            raise ValueError(f"Isotope label {element} in formula '{formula}' is not supported")
        elements[element] = elements.get(element, 0) + count
    return elements


def _hill_order(elements: dict[str, int]) -> list[str]:
    if "C" in elements:
        rest = sorted(element for element in elements if element not in ("C", "H"))
        return ["C"] + (["H"] if "H" in elements else []) + rest
    return sorted(elements)


class MolecularFormula:
    """Immutable multiset of element counts with a net charge.

    Equality and hashing are exact, two formulas are equal if all element counts and the charge are equal.
    """

    __slots__ = ("_elements", "_charge")

    def __init__(self, elements: dict[str, int] | None = None, charge: int = 0):
        counts = {}
        for element, count in (elements or {}).items():
            if int(count) != count:
                raise ValueError(f"Element counts must be integers, got {element}{count}")
            if count < 0:
                raise ValueError(f"Element counts must not be negative, got {element}{count}")
            if count > 0:
                counts[element] = int(count)

        if int(charge) != charge:
            raise ValueError(f"Charge must be an integer, got {charge}")

        object.__setattr__(self, "_elements", tuple(sorted(counts.items())))
        object.__setattr__(self, "_charge", int(charge))

    def __setattr__(self, name, value):
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    def __reduce__(self):
        return self.__class__, (self.elements, self._charge)

    @classmethod
    def parse(cls, formula: str, charge: int = 0) -> "MolecularFormula":
        """Parse a formula string like `C6H12O6` or `Ca(OH)2`.

        Parameters
        ----------

        formula : str
            Formula string. Element symbols may be followed by a count, groups in parentheses by a multiplier.

        charge : int, optional
            Net charge of the formula. By default 0.

        Returns
        -------
        MolecularFormula
            Parsed formula.

        Raises
        ------
        ValueError
            If the formula string is malformed.

        """
        return cls(_parse_elements(formula), charge)

    @property
    def elements(self) -> dict[str, int]:
        return dict(self._elements)

    @property
    def charge(self) -> int:
        return self._charge

    @property
    def n_atoms(self) -> int:
        return sum(count for _, count in self._elements)

    def count(self, element: str) -> int:
        return dict(self._elements).get(element, 0)

    def is_empty(self) -> bool:
        return len(self._elements) == 0

    def with_charge(self, charge: int) -> "MolecularFormula":
        return MolecularFormula(self.elements, charge)

    @property
    def monoisotopic_mass(self) -> float:
        """Monoisotopic mass of the neutral atoms, not corrected for the charge.

        Raises
        ------
        ValueError
            If the formula contains an unknown element.

        """
        return sum(
            get_monoisotopic_mass(element) * count for element, count in self._elements
        )

    @property
    def monoisotopic_mz(self) -> float:
        """m/z of the monoisotopic ion, accounting for the electrons lost or gained."""
        mass = self.monoisotopic_mass - self._charge * ELECTRON_MASS
        return mass / max(1, abs(self._charge))

    def __add__(self, other: "MolecularFormula") -> "MolecularFormula":
        if not isinstance(other, MolecularFormula):
            return NotImplemented
        counts = self.elements
        for element, count in other._elements:
            counts[element] = counts.get(element, 0) + count
        return MolecularFormula(counts, self._charge + other._charge)

    def __sub__(self, other: "MolecularFormula") -> "MolecularFormula":
        if not isinstance(other, MolecularFormula):
            return NotImplemented
        counts = self.elements
        for element, count in other._elements:
            remaining = counts.get(element, 0) - count
            if remaining < 0:
                raise ValueError(
                    f"Can not remove {other.to_string()} from {self.to_string()}, not enough {element} atoms"
                )
            counts[element] = remaining
        return MolecularFormula(counts, self._charge - other._charge)

    def __mul__(self, factor: int) -> "MolecularFormula":
        if not isinstance(factor, int) or factor < 0:
            return NotImplemented
        return MolecularFormula(
            {element: count * factor for element, count in self._elements},
            self._charge * factor,
        )

    __rmul__ = __mul__

    def __eq__(self, other) -> bool:
        if not isinstance(other, MolecularFormula):
            return NotImplemented
        return self._elements == other._elements and self._charge == other._charge

    def __hash__(self) -> int:
        return hash((self._elements, self._charge))

    def to_string(self) -> str:
        """Formula string in Hill order, without the charge."""
        counts = dict(self._elements)
        return "".join(
            element + (str(counts[element]) if counts[element] > 1 else "")
            for element in _hill_order(counts)
        )

    def __str__(self) -> str:
        if self._charge == 0:
            return self.to_string()
        sign = "+" if self._charge > 0 else "-"
        magnitude = abs(self._charge)
        return f"[{self.to_string()}]{magnitude if magnitude > 1 else ''}{sign}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, {self}>"
