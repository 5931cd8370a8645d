"""
Main CLI Entry Point
Equivalent to the installed ``sitepipe`` command.
"""

from sitepipe.cli import main


if __name__ == "__main__":
    main()
