"""Main entry point for the File Service CLI.

Usage:
    python -m fileservice --help
    fileservice --help  # If installed via pip
"""

from fileservice.cli import main

if __name__ == "__main__":
    main()
