# ABOUTME: Entry point for running mediakeyrouter as a module
# ABOUTME: Allows execution via python -m mediakeyrouter

import sys

from mediakeyrouter.app import main

if __name__ == "__main__":
    sys.exit(main())
