"""
Dependency tracking through the install tree's directory links.

A package directory lists the packages it depends on as entries of its
``upstream`` directory (usually symlinks to the other package directories),
and the packages depending on it under ``downstream``.
"""
