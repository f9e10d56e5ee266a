"""Make package runnable with python -m pgmq_client.

This module provides the entry point for running the package as a module
(python -m pgmq_client).
"""

import sys

from pgmq_client.cli import main

if __name__ == "__main__":
    sys.exit(main())
