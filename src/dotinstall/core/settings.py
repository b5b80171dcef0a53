"""
Project-wide constants that are unlikely to change at runtime.
"""

QUERY_FILE_NAME = ".query"      # Last query result, overwritten each run
LOCK_FILE_NAME = ".lock"        # flock target guarding tag mutations
PACKAGE_TAGS_FILE = ".tags"     # Per-package copy of its tags
PACKAGE_COMMENTS_FILE = ".comments"

# Words dropped from harvested install commands
HARVEST_IGNORED_WORDS = ("sudo", "install", "search")
DEFAULT_HARVEST_COMMAND = "dnf"
