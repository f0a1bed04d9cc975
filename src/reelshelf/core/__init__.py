"""Core domain logic.

Pure functions and value objects: no database or HTTP access.
"""
