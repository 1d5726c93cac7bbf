"""Allow ``python -m tetraspore``."""

from tetraspore.app.cli import main

main()
