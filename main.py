"""
Practice booking - command line entry point
Print slot availability for a date, or re-check a single slot

    python main.py 2026-10-20 --days 3
    python main.py 2026-10-20 --slot "04:00 PM"
"""

import argparse

from practicebook.run import main

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show appointment slot availability")
    parser.add_argument("date", help="YYYY-MM-DD")
    parser.add_argument("--days", type=int, default=1)
    parser.add_argument("--slot", default=None, help='e.g. "04:00 PM"')
    parser.add_argument("--graph", action="store_true", help="export the booking graph as Mermaid")
    args = parser.parse_args()
    main(args.date, days=args.days, slot=args.slot, export_graph=args.graph)
