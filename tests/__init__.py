"""Test package for Math Invaders.

This package contains unit tests for the deterministic simulation core and
headless runs of the pygame shell.  The UI tests use pygame's dummy video
driver to avoid opening real windows.  To run these tests, execute
``pytest`` from the project root.
"""
