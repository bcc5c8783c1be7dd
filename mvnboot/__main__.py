"""
Entry point for running mvnboot as a module.

Usage: python -m mvnboot [command] [options]
"""

from mvnboot.cli.parser import main

if __name__ == "__main__":
    main()
