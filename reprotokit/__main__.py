"""
Entry point for running reprotokit CLI as a module.

Usage: python -m reprotokit [command] [options]
"""

from reprotokit.cli.parser import main

if __name__ == "__main__":
    main()
