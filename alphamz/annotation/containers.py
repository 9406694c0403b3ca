"""Containers for measured feature rows and their candidate compound annotations."""

import math
from dataclasses import dataclass

from alphamz.constants.keys import AnnotationState
from alphamz.data.spectrum import Scan
from alphamz.isotopes.formula import MolecularFormula
from alphamz.isotopes.ion_type import IonType
from alphamz.isotopes.pattern import IsotopePattern, MultiChargeStateIsotopePattern
from alphamz.isotopes.resolution import Resolution


@dataclass(eq=False)
class CompoundAnnotation:
    """Candidate identification of a feature, e.g. from a compound database search.

    Parameters
    ----------
    compound_name : str
        Name of the compound.
    formula : MolecularFormula, optional
        Neutral formula of the compound.
    ion_type : IonType, optional
        Ion type the compound was matched as.
    database_score : float, optional
        Score assigned by the database search.
    isotope_pattern_score : float, optional
        Isotope pattern similarity, written by the annotation refiner.
    best_resolution : Resolution, optional
        Resolution that produced the best multi-resolution score, written by the annotation refiner.
    state : str
        One of :class:`alphamz.constants.keys.AnnotationState`.
    """

    compound_name: str = ""
    formula: MolecularFormula | None = None
    ion_type: IonType | None = None
    database_score: float | None = None
    isotope_pattern_score: float | None = None
    best_resolution: Resolution | None = None
    state: str = AnnotationState.UNSCORED

    @property
    def abs_charge(self) -> int:
        if self.ion_type is None:
            return 1
        return max(1, self.ion_type.abs_charge)

    def get_ionized_formula(self) -> MolecularFormula:
        """Formula of the ion including adduct atoms and charge.

        Raises
        ------
        ValueError
            If formula or ion type are missing or the ion type removes more atoms than present.

        """
        if self.formula is None:
            raise ValueError(f"Annotation '{self.compound_name}' has no formula")
        if self.ion_type is None:
            raise ValueError(f"Annotation '{self.compound_name}' has no ion type")
        return self.ion_type.ionize(self.formula)

    @property
    def has_score(self) -> bool:
        return self.isotope_pattern_score is not None and not math.isnan(
            self.isotope_pattern_score
        )


class FeatureRow:
    def __init__(
        self,
        row_id: int,
        compound_annotations: list[CompoundAnnotation] | None = None,
        best_isotope_pattern: IsotopePattern | MultiChargeStateIsotopePattern | None = None,
        representative_scan: Scan | None = None,
    ):
        """Measured feature with its candidate annotations.

        Parameters
        ----------

        row_id : int
            Identifier of the row in the feature list.

        compound_annotations : list[CompoundAnnotation], optional
            Candidate annotations.

        best_isotope_pattern : IsotopePattern | MultiChargeStateIsotopePattern, optional
            Isotope pattern detected for the feature.

        representative_scan : Scan, optional
            MS1 scan of the feature apex. Its mass list is used if no isotope pattern matches the charge of an annotation.

        """
        self.row_id = row_id
        self.best_isotope_pattern = best_isotope_pattern
        self.representative_scan = representative_scan
        self._compound_annotations = list(compound_annotations or [])

    @property
    def compound_annotations(self) -> list[CompoundAnnotation]:
        return list(self._compound_annotations)

    def set_compound_annotations(self, annotations: list[CompoundAnnotation]):
        """Replace all annotations at once."""
        self._compound_annotations = list(annotations)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, row_id={self.row_id}, n_annotations={len(self._compound_annotations)}>"
