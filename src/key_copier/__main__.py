"""Module entrypoint to run `python -m key_copier`."""

import sys

from key_copier.cli import main

if __name__ == "__main__":
    sys.exit(main())
