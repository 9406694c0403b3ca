"""Numba compatible configuration containers."""
