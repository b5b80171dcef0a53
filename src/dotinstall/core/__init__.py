"""
Configuration, constants and exceptions shared by the tag, deps and harvest packages.
"""
