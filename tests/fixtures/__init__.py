"""
Test Fixtures and Utilities

Synthetic registries, export rows, and accounting-export CSV writers shared
across the test suite.
"""
