"""Tests for Guess That Lang.

Everything runs headlessly: the screen, keyboard, clock and GitHub are
replaced by the fakes in ``tests.fakes``. Run ``pytest`` from the project root.
"""
