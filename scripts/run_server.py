#!/usr/bin/env python3
"""Serve the dashboard API with uvicorn from the repository root."""

from __future__ import annotations

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the MedNexus dashboard API.")
    parser.add_argument("--config", default="config.yaml", help="Path to config file.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes.")
    args = parser.parse_args()

    os.environ["MEDNEXUS_CONFIG"] = args.config
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
