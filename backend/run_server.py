#!/usr/bin/env python3
"""
Launch script for the WalkPace Backend.

Usage:
    python run_server.py [data_folder] [--port PORT] [--host HOST]

Examples:
    python run_server.py                    # Use default ./data folder
    python run_server.py /path/to/data      # Use custom folder
    python run_server.py --port 5000        # Run on port 5000
"""

import argparse
import os
import sys
from pathlib import Path

# Add app to path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    parser = argparse.ArgumentParser(description="WalkPace Backend Server")
    parser.add_argument(
        "data_folder",
        nargs="?",
        default="./data",
        help="Folder holding walk history and settings (default: ./data)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="Directions provider API key (or set WALKPACE_DIRECTIONS_API_KEY)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run in debug mode"
    )

    args = parser.parse_args()

    data_folder = Path(args.data_folder)

    print(f"WalkPace Backend")
    print(f"=" * 40)
    print(f"Data folder: {data_folder.absolute()}")
    print(f"Server: http://{args.host}:{args.port}")
    print(f"=" * 40)

    if not data_folder.exists():
        print(f"\nData folder does not exist yet, it will be created on first save")

    # Configure the app through the environment (read by AppConfig.from_env)
    os.environ["WALKPACE_DATA_DIR"] = str(data_folder)
    if args.api_key:
        os.environ["WALKPACE_DIRECTIONS_API_KEY"] = args.api_key

    print("\nAPI Endpoints:")
    print("  GET    /                  - Health check")
    print("  GET    /health            - Detailed health")
    print("  GET    /settings          - Current speed settings")
    print("  PUT    /settings          - Update speed settings")
    print("  POST   /route             - Calculate route estimate")
    print("  POST   /tracking/start    - Start a walk")
    print("  POST   /tracking/samples  - Submit a GPS fix")
    print("  POST   /tracking/stop     - Finish the walk")
    print("  GET    /walks             - Walk history")
    print("  GET    /walks/export      - Download history as CSV")
    print("\nStarting server...")

    import uvicorn

    uvicorn.run(
        "walkpace.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
