#!/usr/bin/env python3
"""
PIP Assist CLI Tool Entry Point
Guided help with UK benefit and government forms
"""

from pipassist.cli.main import main

if __name__ == "__main__":
    main()
