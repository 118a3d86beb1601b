#!/usr/bin/env python3
"""
Gator - RSS Feed Aggregator
===========================

Main application entry point.

Usage:
    python main.py --help                    # Show all commands
    python main.py register alice            # Create a user
    python main.py addfeed NAME URL          # Add and follow a feed
    python main.py agg 1m                    # Collect feeds every minute
    python main.py browse 10                 # Show recent posts
"""

from gatorfeed.cli import cli


if __name__ == '__main__':
    cli()
