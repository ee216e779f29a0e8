"""Constants for minivcs."""

# Store directory (created by `minivcs init` at the project root)
STORE_DIR = ".minivcs"

# Project-level ignore file (gitignore syntax)
IGNORE_FILE = ".minivcsignore"

# Files and directories inside STORE_DIR
CONFIG_FILE = "config.yaml"
TRACKED_FILE = "tracked"
STAGING_FILE = "staging"
INDEX_FILE = "index"
HISTORY_FILE = "history.json"
OBJECTS_DIR = "objects"

# Line format separators
FIELD_SEPARATOR = ";"
FILE_MARKER = "#"

# Parent marker of a commit whose parent link has not been resolved
PARENT_UNRESOLVED = "-"

# Upper bound for any raw read (64 MiB)
MAX_FILE_SIZE = 64 * 1024 * 1024

# History document format version
HISTORY_VERSION = 1

# Version
MINIVCS_VERSION = "0.1.0"
