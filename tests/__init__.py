"""
Correlator Test Suite

This package contains tests for the normalized cross-correlation template matcher.

Structure:
- unit/: Unit tests for individual components
- integration/: End-to-end runs of the command-line entry point
"""
