"""Test package for Tsumego Storm.

Core tests drive the session engine with a fake clock and puzzles written
as inline SGF.  The pygame smoke test uses SDL's dummy video driver so no
real window opens.  Run ``pytest`` from the project root.
"""
