#!/usr/bin/env python
"""
StellarCast - Star Position Forecaster

This is the main entry point for the StellarCast tools. It currently exposes
the prediction CLI; run ``python main.py predict --help`` for its options.
"""

import sys
import argparse

from stellarcast import __version__


def main():
    """Main entry point for StellarCast."""
    parser = argparse.ArgumentParser(
        description=f'StellarCast v{__version__} - Star Position Forecaster',
        epilog='Use "predict" to forecast star positions, distances and velocities.',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('tool',
                        choices=['predict'],
                        help='Tool to run')
    parser.add_argument('--version', action='version',
                        version=f'StellarCast {__version__}')

    args, remaining_args = parser.parse_known_args()

    try:
        if args.tool == 'predict':
            from stellarcast.predictor.cli import main as predict_main
            sys.exit(predict_main(remaining_args))
    except ImportError as e:
        print(f"ERROR: Failed to import required module: {e}", file=sys.stderr)
        print("Ensure all dependencies are installed: pip install -e .", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(130)  # Standard exit code for SIGINT


if __name__ == "__main__":
    main()
