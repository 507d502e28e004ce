"""
Command-line interface for ctekit.
"""
