"""git-forensics: find the commit that introduced a regression."""

__version__ = "0.1.0"
