"""
Command-line tools for CineDB.
"""
