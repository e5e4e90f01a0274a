"""
Run with: python -m impactviz
"""
import sys

from impactviz.main import main

if __name__ == "__main__":
    sys.exit(main())
