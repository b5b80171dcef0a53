"""
Tag system: file-backed named sets of packages and boolean queries over them.

Each tag is a sorted, newline-delimited file under ``<install-root>/.tags``.
Queries start from the union of all tags and narrow (AND) or widen (OR)
the result one operand at a time.
"""
