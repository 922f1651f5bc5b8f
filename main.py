#!/bin/python
"""
Unified entry point for the generation cache.

Regenerates integration-test and per-project build configuration only when
the tracked build definitions changed since the last successful run.
"""
import sys

from GenCache.cli import main

if __name__ == "__main__":
    sys.exit(main())
