"""
Utility helpers - geometry, upload validation, email templates.
"""
