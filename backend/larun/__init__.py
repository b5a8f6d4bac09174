"""LARUN backend - exoplanet analysis chat service."""
