"""
Entry point for running helm-installer as a module.

Usage: python -m helm_installer [options]
"""

from helm_installer.cli.parser import main

if __name__ == "__main__":
    main()
