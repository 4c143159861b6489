"""
Korvalia web front service: public real-estate site and admin back-office
served on top of the Korvalia property backend.
"""

__version__ = "0.1.0"
