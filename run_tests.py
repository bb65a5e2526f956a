#!/usr/bin/env python
"""Test runner for AI Dispatch."""

import sys
import subprocess
import argparse

COMPONENTS = ("reliability", "observability", "providers", "monitoring", "config")


def build_command(args, extra):
    cmd = ["pytest"]

    if args.component:
        cmd.append(f"tests/unit/{args.component}")
    elif args.unit:
        cmd.append("tests/unit")
    elif args.integration:
        cmd.extend(["tests/integration", "-m", "integration"])

    if args.verbose:
        cmd.append("-vv")

    if args.coverage:
        cmd.extend([
            "--cov=ai_dispatch",
            "--cov-report=term-missing",
            "--cov-report=html"
        ])

    return cmd + extra


def main():
    """Run tests with various options."""
    parser = argparse.ArgumentParser(description="Run AI Dispatch tests")
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("--unit", action="store_true", help="Run unit tests only")
    scope.add_argument("--integration", action="store_true", help="Run integration tests only")
    scope.add_argument("--component", choices=COMPONENTS,
                       help="Run the unit tests of one package")
    parser.add_argument("--coverage", action="store_true", help="Generate coverage report")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Anything unrecognised is handed to pytest, e.g. ``-k breaker -x``
    args, extra = parser.parse_known_args()
    cmd = build_command(args, extra)

    print(f"Running: {' '.join(cmd)}")
    return subprocess.run(cmd).returncode


if __name__ == "__main__":
    sys.exit(main())
