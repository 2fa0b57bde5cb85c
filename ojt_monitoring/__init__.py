"""
OJT Monitoring System
Role-based API for tracking student On-the-Job Training placements.

Architecture:
- MongoDB: users, companies, time records, documents, tasks, chat
- Socket.IO: real-time messaging and read receipts
- S3-compatible storage: uploaded files
- SMTP: notification emails
"""

__version__ = "1.0.0"
__author__ = "OJT Monitoring Team"
