"""
View-model builders and admin workflows on top of the backend clients.
"""
