"""Refinement of compound annotations by isotope pattern similarity."""
