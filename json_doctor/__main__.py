import sys

from .selfcheck import run

if __name__ == "__main__":
    sys.exit(run())
