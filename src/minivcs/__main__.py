"""Allow ``python -m minivcs``."""

from .cli import main

main()
