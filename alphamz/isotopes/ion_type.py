"""Ion types (adducts) describing how a neutral molecule is ionized.

Ion types are written in the usual bracket notation, e.g. `[M+H]+`, `[M-H]-`, `[M+2H]2+`, `[2M+Na]+` or
`[M+H-H2O]+`. The multiplier in front of `M` counts the molecules in the ion. Every added or removed group may
carry a multiplier. The charge after the bracket determines the charge of the ion.
"""

import re

from alphamz.constants.keys import Polarity
from alphamz.isotopes.formula import MolecularFormula

_ION_PATTERN = re.compile(r"^\[(\d*)M((?:[+-]\d*[A-Za-z0-9()]+)*)\](\d*)([+-]?)$")
_MODIFICATION_PATTERN = re.compile(r"([+-])(\d*)([A-Z][A-Za-z0-9()]*)")


class IonType:
    """Adduct or in-source modification of a molecule with a molecule multiplier and a charge."""

    __slots__ = ("_molecules", "_added", "_removed", "_charge")

    def __init__(
        self,
        added: MolecularFormula | None = None,
        removed: MolecularFormula | None = None,
        charge: int = 1,
        molecules: int = 1,
    ):
        """Ion type created from its formula changes.

        Parameters
        ----------

        added : MolecularFormula, optional
            Atoms added to the molecule(s), e.g. `H` for `[M+H]+`.

        removed : MolecularFormula, optional
            Atoms removed from the molecule(s), e.g. `H3O` for `[M+H-H2O]+`.

        charge : int, optional
            Signed charge of the ion. By default 1.

        molecules : int, optional
            Number of molecules in the ion. By default 1.

        """
        if molecules < 1:
            raise ValueError(f"An ion contains at least one molecule, got {molecules}")

        object.__setattr__(self, "_molecules", int(molecules))
        object.__setattr__(self, "_added", (added or MolecularFormula()).with_charge(0))
        object.__setattr__(
            self, "_removed", (removed or MolecularFormula()).with_charge(0)
        )
        object.__setattr__(self, "_charge", int(charge))

    def __setattr__(self, name, value):
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    def __reduce__(self):
        return self.__class__, (self._added, self._removed, self._charge, self._molecules)

    @classmethod
    def parse(cls, ion: str) -> "IonType":
        """Parse an ion type in bracket notation.

        Parameters
        ----------

        ion : str
            Ion type like `[M+H]+` or `[2M+Na]+`. Without charge suffix the ion is neutral.

        Returns
        -------
        IonType
            Parsed ion type.

        Raises
        ------
        ValueError
            If the string is not a valid ion type.

        """
        match = _ION_PATTERN.match(ion.replace(" ", ""))
        if match is None:
            raise ValueError(f"Invalid ion type '{ion}'")

        molecules, modifications, charge_magnitude, charge_sign = match.groups()

        added = MolecularFormula()
        removed = MolecularFormula()
        consumed = 0
        for modification in _MODIFICATION_PATTERN.finditer(modifications):
            sign, multiplier, group = modification.groups()
            delta = MolecularFormula.parse(group) * (int(multiplier) if multiplier else 1)
            if sign == "+":
                added = added + delta
            else:
                removed = removed + delta
            consumed += len(modification.group(0))

        if consumed != len(modifications):
            raise ValueError(f"Invalid modification '{modifications}' in ion type '{ion}'")

        if charge_sign == "":
            if charge_magnitude:
                raise ValueError(f"Missing charge sign in ion type '{ion}'")
            charge = 0
        else:
            charge = int(charge_magnitude) if charge_magnitude else 1
            if charge_sign == "-":
                charge = -charge

        return cls(
            added=added,
            removed=removed,
            charge=charge,
            molecules=int(molecules) if molecules else 1,
        )

    @property
    def molecules(self) -> int:
        return self._molecules

    @property
    def added(self) -> MolecularFormula:
        return self._added

    @property
    def removed(self) -> MolecularFormula:
        return self._removed

    @property
    def charge(self) -> int:
        return self._charge

    @property
    def abs_charge(self) -> int:
        return abs(self._charge)

    @property
    def polarity(self) -> str:
        if self._charge > 0:
            return Polarity.POSITIVE
        if self._charge < 0:
            return Polarity.NEGATIVE
        return Polarity.NEUTRAL

    def ionize(self, formula: MolecularFormula) -> MolecularFormula:
        """Apply the ion type to a neutral formula.

        Parameters
        ----------

        formula : MolecularFormula
            Neutral molecule.

        Returns
        -------
        MolecularFormula
            Formula of the ion, carrying the charge of this ion type.

        Raises
        ------
        ValueError
            If more atoms are removed than present.

        """
        ion = formula.with_charge(0) * self._molecules + self._added - self._removed
        return ion.with_charge(self._charge)

    def __eq__(self, other) -> bool:
        if not isinstance(other, IonType):
            return NotImplemented
        return (
            self._molecules == other._molecules
            and self._added == other._added
            and self._removed == other._removed
            and self._charge == other._charge
        )

    def __hash__(self) -> int:
        return hash((self._molecules, self._added, self._removed, self._charge))

    def __str__(self) -> str:
        name = "[" + (str(self._molecules) if self._molecules > 1 else "") + "M"
        if not self._added.is_empty():
            name += "+" + self._added.to_string()
        if not self._removed.is_empty():
            name += "-" + self._removed.to_string()
        name += "]"
        if self._charge != 0:
            if self.abs_charge > 1:
                name += str(self.abs_charge)
            name += "+" if self._charge > 0 else "-"
        return name

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, {self}>"


COMMON_ION_TYPES = {
    name: IonType.parse(name)
    for name in [
        "[M+H]+",
        "[M+Na]+",
        "[M+K]+",
        "[M+NH4]+",
        "[M+H-H2O]+",
        "[M+2H]2+",
        "[2M+H]+",
        "[2M+Na]+",
        "[M-H]-",
        "[M+Cl]-",
        "[M+HCOO]-",
        "[M-H-H2O]-",
        "[M-2H]2-",
        "[2M-H]-",
    ]
}
