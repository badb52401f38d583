"""Guess That Lang: name the programming language before the code is fully revealed."""

__version__ = "1.0.0"
