"""
Test suite for kbexport
"""
