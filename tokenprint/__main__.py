"""Main entry point for running tokenprint as a module."""

from .cli import main

if __name__ == "__main__":
    main()
