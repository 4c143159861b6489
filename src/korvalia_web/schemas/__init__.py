"""
Pydantic schemas for backend records and request bodies.
"""
