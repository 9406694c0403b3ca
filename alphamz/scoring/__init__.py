"""Spectral similarity scoring of predicted against measured signals."""
