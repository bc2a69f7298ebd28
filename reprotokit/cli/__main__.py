"""
Entry point for running reprotokit CLI as a module.

Usage: python -m reprotokit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
