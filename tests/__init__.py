"""Test suite package for maidmarket.

Keeping ``tests`` a package lets test modules import shared doubles through
absolute ``tests.maidmarket.support`` paths regardless of the pytest rootdir.
"""
