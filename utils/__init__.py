"""
Shared helpers for identifier validation and text comparison.
"""
