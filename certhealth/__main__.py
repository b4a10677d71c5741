"""Allow running as ``python -m certhealth``."""

from .cli import main

main()
