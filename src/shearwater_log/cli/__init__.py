"""
Shearwater Log Command-Line Interface
=====================================

This package provides the command-line tool for the decoder:

- **swlog**: inspect, dump and validate raw dive logs

The tool is a Click-based CLI application with comprehensive help
and consistent error reporting.
"""

__all__ = ["swlog"]
