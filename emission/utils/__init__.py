"""Small dependency-free helpers used by the emission package."""
