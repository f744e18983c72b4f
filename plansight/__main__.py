"""Entry point for ``python -m plansight``."""

from plansight.cli.main import main

if __name__ == "__main__":
    main()
