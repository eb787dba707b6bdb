#!/usr/bin/env python3
"""Sandoro — entry point.

Run with:
    python main.py
    python -m sandoro
"""

from sandoro.__main__ import main


if __name__ == "__main__":
    main()
