"""Binning and resampling of ion mobility traces."""
