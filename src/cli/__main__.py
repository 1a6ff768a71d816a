"""Allow ``python -m src.cli`` execution."""

from src.cli.manage import main

main()
