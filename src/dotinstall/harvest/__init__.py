"""
Harvesting package names from install scripts and shell history.
"""
