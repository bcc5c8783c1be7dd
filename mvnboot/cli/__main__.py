"""
Entry point for running the mvnboot CLI as a module.

Usage: python -m mvnboot.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
