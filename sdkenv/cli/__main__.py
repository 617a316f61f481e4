"""
Entry point for running sdkenv CLI as a module.

Usage: python -m sdkenv.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
