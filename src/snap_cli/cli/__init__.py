"""
Command-line interface for snap-cli.
"""
