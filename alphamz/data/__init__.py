"""Typed spectrum containers handed over by the raw data layer."""
