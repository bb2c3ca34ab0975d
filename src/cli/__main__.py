"""Allow ``python -m src.cli`` execution."""

from src.cli.documents import main

main()
