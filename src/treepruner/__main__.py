"""Run with: python -m treepruner"""
import sys

from treepruner.main import main

if __name__ == "__main__":
    sys.exit(main())
