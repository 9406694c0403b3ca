"""Molecular formulas, ion types and isotope pattern prediction."""
