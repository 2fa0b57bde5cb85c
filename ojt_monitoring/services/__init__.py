"""
Services - business logic over MongoDB collections, email, storage and sockets.
"""
