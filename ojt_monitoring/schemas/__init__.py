"""
Schemas module - request/response models.
"""
