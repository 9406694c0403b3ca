import pickle

import pytest

from alphamz.constants.keys import Polarity
from alphamz.isotopes.formula import MolecularFormula
from alphamz.isotopes.ion_type import COMMON_ION_TYPES, IonType


@pytest.mark.parametrize(
    "formula, expected_elements",
    [
        ("C6H12O6", {"C": 6, "H": 12, "O": 6}),
        ("Ca(OH)2", {"Ca": 1, "O": 2, "H": 2}),
        ("Mg(NO3)2", {"Mg": 1, "N": 2, "O": 6}),
        ("CH3(CH2)4CH3", {"C": 6, "H": 14}),
        ("K4(Fe(CN)6)", {"K": 4, "Fe": 1, "C": 6, "N": 6}),
        ("HOH", {"H": 2, "O": 1}),
        ("C2H6O D", {"C": 2, "H": 6, "O": 1, "D": 1}),
        ("H[2]2O", {"D": 2, "O": 1}),
    ],
)
def test_parse_formula(formula, expected_elements):
    assert MolecularFormula.parse(formula).elements == expected_elements


@pytest.mark.parametrize(
    "formula", ["C6H12O6)", "(C6H12O6", "c6h12o6", "C6-H12", "C$", "C[13]H4"]
)
def test_parse_invalid_formula(formula):
    with pytest.raises(ValueError):
        MolecularFormula.parse(formula)


def test_formula_equality_and_hash():
    # Given: the same formula written in different orders
    formula_1 = MolecularFormula.parse("C6H12O6")
    formula_2 = MolecularFormula.parse("O6H12C6")
    charged = MolecularFormula.parse("C6H12O6", charge=1)

    # Then
    assert formula_1 == formula_2
    assert len({formula_1, formula_2}) == 1
    assert formula_1 != charged
    assert len({formula_1, charged}) == 2


@pytest.mark.parametrize(
    "formula, expected",
    [
        ("C6H12O6", "C6H12O6"),
        ("OC", "CO"),
        ("NaCl", "ClNa"),
        ("OH2", "H2O"),
        ("C2H5OHS", "C2H6OS"),
    ],
)
def test_formula_hill_order(formula, expected):
    assert MolecularFormula.parse(formula).to_string() == expected


def test_formula_arithmetic():
    water = MolecularFormula.parse("H2O")
    methylene = MolecularFormula.parse("CH2")

    assert methylene * 3 == MolecularFormula.parse("C3H6")
    assert 2 * water == MolecularFormula.parse("H4O2")
    assert water + methylene == MolecularFormula.parse("CH4O")
    assert MolecularFormula.parse("CH4O") - water == methylene

    with pytest.raises(ValueError):
        water - methylene


def test_formula_mass():
    water = MolecularFormula.parse("H2O")

    assert water.monoisotopic_mass == pytest.approx(18.0105646837, abs=1e-6)
    assert water.monoisotopic_mz == pytest.approx(18.0105646837, abs=1e-6)
    assert water.with_charge(2).monoisotopic_mz == pytest.approx(
        (18.0105646837 - 2 * 0.00054857990946) / 2, abs=1e-6
    )


def test_formula_with_unknown_element_has_no_mass():
    formula = MolecularFormula.parse("C6Xy2")

    with pytest.raises(ValueError):
        formula.monoisotopic_mass  # noqa: B018


def test_formula_is_immutable():
    formula = MolecularFormula.parse("H2O")

    with pytest.raises(AttributeError):
        formula._charge = 1

    assert pickle.loads(pickle.dumps(formula)) == formula


def test_formula_str():
    assert str(MolecularFormula.parse("C6H13O6", charge=1)) == "[C6H13O6]+"
    assert str(MolecularFormula.parse("C6H10O6", charge=-2)) == "[C6H10O6]2-"
    assert str(MolecularFormula.parse("H2O")) == "H2O"


@pytest.mark.parametrize(
    "ion, molecules, added, removed, charge",
    [
        ("[M+H]+", 1, "H", "", 1),
        ("[M-H]-", 1, "", "H", -1),
        ("[M+2H]2+", 1, "H2", "", 2),
        ("[2M+Na]+", 2, "Na", "", 1),
        ("[M+H-H2O]+", 1, "H", "H2O", 1),
        ("[M+NH4]+", 1, "NH4", "", 1),
        ("[M-2H]2-", 1, "", "H2", -2),
        ("[M]+", 1, "", "", 1),
        ("[M]", 1, "", "", 0),
    ],
)
def test_parse_ion_type(ion, molecules, added, removed, charge):
    ion_type = IonType.parse(ion)

    assert ion_type.molecules == molecules
    assert ion_type.added == MolecularFormula.parse(added)
    assert ion_type.removed == MolecularFormula.parse(removed)
    assert ion_type.charge == charge
    assert ion_type.abs_charge == abs(charge)


@pytest.mark.parametrize("ion", ["M+H", "[M+H]2", "[X+H]+", "[M+h]+", "[M++H]+"])
def test_parse_invalid_ion_type(ion):
    with pytest.raises(ValueError):
        IonType.parse(ion)


@pytest.mark.parametrize(
    "ion, expected",
    [
        ("[M+H]+", "[M+H]+"),
        ("[M-H]-", "[M-H]-"),
        ("[2M+Na]+", "[2M+Na]+"),
        ("[M+H-H2O]+", "[M+H-H2O]+"),
        ("[M+2H]2+", "[M+H2]2+"),
    ],
)
def test_ion_type_str(ion, expected):
    ion_type = IonType.parse(ion)

    assert str(ion_type) == expected
    assert IonType.parse(str(ion_type)) == ion_type


def test_ion_type_polarity():
    assert IonType.parse("[M+H]+").polarity == Polarity.POSITIVE
    assert IonType.parse("[M-H]-").polarity == Polarity.NEGATIVE
    assert IonType.parse("[M]").polarity == Polarity.NEUTRAL


def test_ionize():
    # Given
    glucose = MolecularFormula.parse("C6H12O6")

    # When
    protonated = IonType.parse("[M+H]+").ionize(glucose)
    dimer = IonType.parse("[2M+Na]+").ionize(glucose)
    water_loss = IonType.parse("[M+H-H2O]+").ionize(glucose)

    # Then
    assert protonated == MolecularFormula.parse("C6H13O6", charge=1)
    assert dimer == MolecularFormula.parse("C12H24O12Na", charge=1)
    assert water_loss == MolecularFormula.parse("C6H11O5", charge=1)
    assert protonated.monoisotopic_mz == pytest.approx(181.070665, abs=1e-5)


def test_ionize_removing_missing_atoms_raises():
    with pytest.raises(ValueError):
        IonType.parse("[M-H2O]-").ionize(MolecularFormula.parse("CH4"))


def test_different_adducts_give_distinct_formulas():
    glucose = MolecularFormula.parse("C6H12O6")

    ion_formulas = {
        COMMON_ION_TYPES[ion].ionize(glucose) for ion in ["[M+H]+", "[M+Na]+", "[M-H]-"]
    }

    assert len(ion_formulas) == 3


def test_ion_type_equality():
    assert IonType.parse("[M+H]+") == IonType.parse("[M + H]+")
    assert IonType.parse("[M+H]+") != IonType.parse("[M+H]2+")
    assert hash(IonType.parse("[M+Na]+")) == hash(COMMON_ION_TYPES["[M+Na]+"])
