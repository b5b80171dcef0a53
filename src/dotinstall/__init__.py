"""
dotinstall: tag queries and dependency ordering over a dotfiles install tree.
"""

__version__ = "0.1.0"
