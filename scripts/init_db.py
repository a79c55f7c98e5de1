#!/usr/bin/env python3
"""
Standalone database initialization script
Can be run from host machine (outside Docker) or inside container
"""

import sys
import os

# Ensure we're using the right Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from scripts.init_databases import main

if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("TablePOS Database Initialization (Standalone)")
    print("=" * 60)
    print("\nThis will create/update:")
    print("  • PostgreSQL tables (dining_table, pos_order, pos_order_line)")
    print("  • The restaurant floor plan")
    print("  • MongoDB menu categories and items")
    print("\n" + "=" * 60 + "\n")

    exit_code = main(sys.argv[1:])

    if exit_code == 0:
        print("\nSUCCESS! Seat a table with: POST /tables/{id}/open\n")
    else:
        print("\nFAILED! Check the errors above.\n")
    sys.exit(exit_code)
