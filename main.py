#!/usr/bin/env python3
"""
Main entry point for the authentication daemon
"""

from authd.main import run

if __name__ == "__main__":
    run()
