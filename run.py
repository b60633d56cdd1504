#!/usr/bin/env python3
"""JAT Monitor - Run the application.

Usage:
    python run.py
    # Or: jat-monitor

The API will be available at http://localhost:5050/api
"""

from jat_monitor.app import main

if __name__ == "__main__":
    main()
