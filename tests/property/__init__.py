"""
Property-based tests for DotPrint feature extraction.

Hypothesis-driven checks of invariants that must hold for every pattern.
"""
