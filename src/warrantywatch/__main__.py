"""Allow ``python -m warrantywatch``."""

from warrantywatch.cli.main import main

main()
