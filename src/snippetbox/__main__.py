"""``python -m snippetbox``."""

from snippetbox.cli import main

main()
