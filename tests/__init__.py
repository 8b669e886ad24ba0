"""
Test Suite for jobledger

Test Structure:
- fixtures/: Shared registries, export rows, and CSV writers
- unit/: Unit tests mirroring src/ package structure
- integration/: JSON store and CLI workflows
- e2e/: CLI runs in a subprocess

Test Data:
All vendors, clients, and projects are synthetic.
"""
