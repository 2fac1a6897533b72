#!/usr/bin/env python3
"""
Start Celery Worker for ScheduleX
"""

import sys

from schedulex.celery_app import celery_app
from schedulex.config import LOG_LEVEL

if __name__ == "__main__":
    print("Starting Celery Worker for ScheduleX...")
    print("This will process background schedule optimizations")
    print("Press Ctrl+C to stop")

    try:
        celery_app.start(['worker', f'--loglevel={LOG_LEVEL.lower()}'])
    except KeyboardInterrupt:
        print("\nStopping Celery Worker...")
        sys.exit(0)
