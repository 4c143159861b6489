"""
Client modules for the property backend.
"""
