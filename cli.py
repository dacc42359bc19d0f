#!/usr/bin/env python3
"""
Command-line interface for the DreamEvents booking workflow.

Usage:
    python cli.py [command] [options]

Commands:
    demo        Run demo scenarios against the fixtures
    test        Run the test suite
    serve       Start the API server

Examples:
    python cli.py demo accept
    python cli.py demo all
    python cli.py serve --reload
"""

import argparse
import subprocess
import sys

SCENARIO_CHOICES = ["create", "accept", "reject", "flaky-email", "all"]


def run_demo(scenario: str) -> None:
    """Run a demo scenario."""
    from bookings.demo import SCENARIOS, run_scenario

    if scenario != "all" and scenario not in SCENARIOS:
        print(f"Unknown scenario: {scenario}")
        sys.exit(1)
    run_scenario(scenario)


def run_tests(args: list[str]) -> None:
    """Run the test suite."""
    cmd = [sys.executable, "-m", "pytest"] + args
    sys.exit(subprocess.run(cmd).returncode)


def run_server(host: str, port: int, reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    print(f"Starting server at http://{host}:{port}")
    print(f"API docs available at http://{host}:{port}/docs")
    uvicorn.run("api.main:app", host=host, port=port, reload=reload)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="DreamEvents booking workflow CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo create
  %(prog)s demo flaky-email
  %(prog)s demo all
  %(prog)s test -v
  %(prog)s serve --reload
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demo scenarios")
    demo_parser.add_argument(
        "scenario",
        choices=SCENARIO_CHOICES,
        help="Which scenario to run",
    )

    # Test command
    test_parser = subparsers.add_parser("test", help="Run the test suite")
    test_parser.add_argument(
        "pytest_args",
        nargs="*",
        default=[],
        help="Arguments to pass to pytest",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    if args.command == "demo":
        run_demo(args.scenario)
    elif args.command == "test":
        run_tests(args.pytest_args)
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
