"""
Core configuration, database and error types.
"""
