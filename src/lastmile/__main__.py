"""Allow ``python -m lastmile``."""

from lastmile.cli.main import main

main()
