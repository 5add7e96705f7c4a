"""Core packages for the journeyqa natural-language web tester."""
