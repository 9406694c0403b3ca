"""Peak detection algorithms turning profile spectra into peak lists."""
