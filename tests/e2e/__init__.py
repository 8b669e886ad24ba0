#!/usr/bin/env python3
"""
End-to-end tests for jobledger.

These tests execute actual CLI commands via subprocess against synthetic
exports and a record store in a temporary directory.
"""
