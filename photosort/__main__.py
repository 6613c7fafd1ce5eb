import sys

from photosort.cli import main

if __name__ == "__main__":
    sys.exit(main())
