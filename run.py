#!/usr/bin/env python3
"""
Simple launcher script for ScheduleX API.
Run this from the root directory to start the application.
"""

import uvicorn

from schedulex.config import LOG_LEVEL

if __name__ == "__main__":
    print("🚀 Starting ScheduleX API with auto-reload...")
    print("📖 API Documentation: http://localhost:8000/docs")
    print("🔍 Health Check: http://localhost:8000/health")
    print("🛑 Press Ctrl+C to stop the server")
    print("-" * 50)

    # Use import string format for reload to work properly
    uvicorn.run(
        "schedulex.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["schedulex"],
        log_level=LOG_LEVEL.lower()
    )
