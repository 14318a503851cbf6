"""
``python -m bannerscrape --all`` does the same as the ``bannerscrape`` script.
"""

import sys

from bannerscrape.cli import main

if __name__ == "__main__":
    main(sys.argv[1:])
