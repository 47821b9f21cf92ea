#!/usr/bin/env python3
"""
Revenue Ledger Command Line Interface.

Provides commands for running and inspecting the revenue ledger service:
    - serve: Start the API server
    - check: Verify installation and configuration
    - info: Display system information

Usage:
    revenue-ledger serve [--host HOST] [--port PORT] [--debug]
    revenue-ledger serve --production [--threads N]
    revenue-ledger check
    revenue-ledger info
    revenue-ledger --version
"""

import argparse
import os
import sys

# Ensure src is in path when running from source
if os.path.exists(os.path.join(os.path.dirname(__file__), "revenue_distribution.py")):
    sys.path.insert(0, os.path.dirname(__file__))


def cmd_serve(args):
    """Start the revenue ledger API server."""
    from dotenv import load_dotenv

    load_dotenv()

    from monitoring import configure_logging

    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = args.port or int(os.getenv("PORT", 5000))
    debug = args.debug or os.getenv("FLASK_DEBUG", "").lower() == "true"

    print(f"Starting Revenue Ledger API server on {host}:{port}")

    from api import create_app

    flask_app = create_app()

    if args.production:
        try:
            import gunicorn.app.base
        except ImportError:
            print(
                "Error: gunicorn not installed. Install with: pip install revenue-ledger[production]"
            )
            sys.exit(1)

        class StandaloneApplication(gunicorn.app.base.BaseApplication):
            """Gunicorn WSGI wrapper serving the Flask app from this process."""

            def __init__(self, app, options=None):
                self.options = options or {}
                self.application = app
                super().__init__()

            def load_config(self):
                for key, value in self.options.items():
                    if key in self.cfg.settings and value is not None:
                        self.cfg.set(key.lower(), value)

            def load(self):
                return self.application

        # The ledger lives in process memory: one worker, many threads
        options = {
            "bind": f"{host}:{port}",
            "workers": 1,
            "threads": args.threads or int(os.getenv("THREADS", 8)),
            "worker_class": "gthread",
            "timeout": 120,
            "accesslog": "-",
            "errorlog": "-",
        }
        StandaloneApplication(flask_app, options).run()
    else:
        flask_app.run(host=host, port=port, debug=debug)


def cmd_check(args):
    """Check installation and configuration."""
    print("Revenue Ledger Installation Check")
    print("=" * 40)

    checks = []

    try:
        from revenue_distribution import RevenueLedger

        RevenueLedger(owner="check").calculate_investor_share(0, 0, "check")
        checks.append(("Core ledger", "OK"))
    except ImportError as e:
        checks.append(("Core ledger", f"FAIL: {e}"))

    try:
        from api import create_app

        create_app()
        checks.append(("Flask API", "OK"))
    except ImportError as e:
        checks.append(("Flask API", f"FAIL: {e}"))

    try:
        from ledger_clock import get_clock

        clock = get_clock(os.getenv("LEDGER_CLOCK", "block"))
        checks.append((f"Clock ({clock.__class__.__name__})", "OK"))
    except ValueError as e:
        checks.append(("Clock", f"FAIL: {e}"))

    default_bps = os.getenv("LEDGER_DEFAULT_OWNERSHIP_BPS")
    if default_bps:
        try:
            from ownership import FixedOwnership

            FixedOwnership(int(default_bps))
            checks.append(("Ownership (fixed)", "OK"))
        except ValueError as e:
            checks.append(("Ownership (fixed)", f"FAIL: {e}"))
    else:
        checks.append(("Ownership (registry)", "OK"))

    try:
        import dotenv  # noqa: F401

        checks.append(("dotenv support", "OK"))
    except ImportError:
        checks.append(("dotenv support", "SKIP (python-dotenv not installed)"))

    try:
        import gunicorn  # noqa: F401

        checks.append(("Production server", "OK"))
    except ImportError:
        checks.append(("Production server", "SKIP (gunicorn not installed)"))

    print()
    all_ok = True
    for name, status in checks:
        icon = "✓" if status == "OK" else ("○" if "SKIP" in status else "✗")
        print(f"  {icon} {name}: {status}")
        if "FAIL" in status:
            all_ok = False

    print()
    if all_ok:
        print("All checks passed!")
        return 0
    else:
        print("Some checks failed. See above for details.")
        return 1


def cmd_info(args):
    """Display system information."""
    import platform

    from api.monitoring import get_version

    print("Revenue Ledger System Information")
    print("=" * 40)
    print(f"Version: {get_version()}")
    print(f"Python: {platform.python_version()}")
    print(f"Platform: {platform.platform()}")

    print()
    print("Configuration:")
    print(f"  LEDGER_OWNER: {os.getenv('LEDGER_OWNER', 'default')}")
    print(f"  LEDGER_CLOCK: {os.getenv('LEDGER_CLOCK', 'block (default)')}")
    print(f"  LEDGER_DEFAULT_OWNERSHIP_BPS: {os.getenv('LEDGER_DEFAULT_OWNERSHIP_BPS', 'not set (registry)')}")
    print(f"  REVENUE_API_KEY: {'configured' if os.getenv('REVENUE_API_KEY') else 'not set'}")
    print(f"  REVENUE_REQUIRE_AUTH: {os.getenv('REVENUE_REQUIRE_AUTH', 'true (default)')}")
    print(f"  LOG_LEVEL: {os.getenv('LOG_LEVEL', 'INFO (default)')}")
    print(f"  LOG_FORMAT: {os.getenv('LOG_FORMAT', 'console (default)')}")

    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="revenue-ledger",
        description="Revenue Ledger - per-period revenue distribution and investor claims",
    )
    parser.add_argument("--version", "-v", action="version", version="%(prog)s 0.1.0")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Port to bind to (default: 5000)")
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    serve_parser.add_argument(
        "--production", action="store_true", help="Use gunicorn for production"
    )
    serve_parser.add_argument("--threads", type=int, help="Worker threads (production mode)")

    # check command
    subparsers.add_parser("check", help="Check installation and configuration")

    # info command
    subparsers.add_parser("info", help="Display system information")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "check":
        sys.exit(cmd_check(args))
    elif args.command == "info":
        sys.exit(cmd_info(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
