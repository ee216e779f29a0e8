"""minivcs - a minimal content-addressed version-control store."""

from .constants import MINIVCS_VERSION

__version__ = MINIVCS_VERSION
