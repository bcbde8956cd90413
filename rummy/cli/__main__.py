"""Entry-point for ``python -m rummy.cli``."""

from .main import main

main()
