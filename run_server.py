#!/usr/bin/env python3
"""
Revenue Ledger API Server Launcher
"""

import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from dotenv import load_dotenv

load_dotenv()

from api import create_app


def run_server():
    """Run the Flask development server."""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))

    print(f"\n{'='*60}")
    print("Revenue Ledger API Server")
    print(f"{'='*60}")
    print(f"Listening on: http://{host}:{port}")
    print(f"{'='*60}\n")

    create_app().run(host=host, port=port, debug=os.getenv("FLASK_DEBUG", "").lower() == "true")


if __name__ == '__main__':
    run_server()
