"""
Phrase Coach - backend for practicing English expressions in short dialogues.
"""

__version__ = "1.0.0"
