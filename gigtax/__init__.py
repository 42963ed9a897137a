"""Gig Tax - Set-aside and tax estimates for self-employed income."""

__version__ = "0.3.0"
