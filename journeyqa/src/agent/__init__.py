"""Model-backed step interpretation."""
