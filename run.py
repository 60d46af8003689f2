#!/usr/bin/env python3
"""Convenience runner for the slope tracker replay tool.

Usage:
    python run.py readings.csv [--profile car_testing] [--map runs.html]
"""
import logging
from slope_tracker.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
