"""
Command Line Interface Package

Click commands for running imports and inspecting matches.
"""
