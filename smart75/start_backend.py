#!/usr/bin/env python3
"""
Backend startup wrapper.

Usage: python -m smart75.start_backend [--host HOST] [--port PORT]
"""
import argparse
import sys

import uvicorn


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the 75 Smart backend")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args(argv)

    print("[Backend] Starting 75 Smart backend")
    print(f"[Backend] Server: http://{args.host}:{args.port}")
    print("[Backend] Press CTRL+C to stop")
    try:
        uvicorn.run(
            "smart75.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level="info",
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\n[Backend] Shutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
