#!/usr/bin/env python3
"""ChronoStack — entry point.

Run with:
    python main.py
    python -m chronostack
"""

from chronostack.__main__ import main


if __name__ == "__main__":
    main()
