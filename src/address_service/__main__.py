"""Main entry point for the address service CLI.

Usage:
    python -m address_service --help
"""

from address_service.cli import main

if __name__ == "__main__":
    main()
