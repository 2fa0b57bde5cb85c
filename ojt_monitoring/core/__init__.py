"""
Core module - configuration, authentication, logging and error handling.
"""
