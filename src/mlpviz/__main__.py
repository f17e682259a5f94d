"""Command-line entry: python -m mlpviz [image]"""
import sys

from mlpviz.app.main import main

if __name__ == "__main__":
    sys.exit(main())
