"""Allow ``python -m linkcard``."""

from linkcard.cli import main

main()
