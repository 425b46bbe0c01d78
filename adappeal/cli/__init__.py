"""
Command line interface for adappeal
"""
