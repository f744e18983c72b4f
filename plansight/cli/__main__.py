#!/usr/bin/env python3
"""Entry point for the plansight CLI when run as python -m plansight.cli."""

if __name__ == "__main__":
    from plansight.cli.main import main

    main()
