#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB, SMTP and object storage are reachable.
Usage: python scripts/check_connections.py
"""
import asyncio

import aiosmtplib

from ojt_monitoring.core.config import get_settings
from ojt_monitoring.db.mongodb import test_mongo_connection
from ojt_monitoring.services.storage_service import get_storage_service


async def check_smtp(settings) -> bool:
    smtp = aiosmtplib.SMTP(hostname=settings.smtp_host, port=settings.smtp_port, start_tls=True)
    try:
        await smtp.connect()
        await smtp.login(settings.smtp_user, settings.smtp_password)
        return True
    except aiosmtplib.SMTPException as e:
        print(f"    {e}")
        return False
    finally:
        if smtp.is_connected:
            await smtp.quit()


def main():
    settings = get_settings()
    print("=" * 50)
    print("OJT MONITORING SYSTEM - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    print("    MongoDB: " + ("CONNECTED" if test_mongo_connection() else "FAILED"))

    print("\n[2] Checking SMTP...")
    if settings.smtp_configured:
        print(f"    Host: {settings.smtp_host}:{settings.smtp_port}")
        print("    SMTP: " + ("CONNECTED" if asyncio.run(check_smtp(settings)) else "FAILED"))
    else:
        print("    SMTP: credentials not configured (emails will be skipped)")

    print("\n[3] Checking object storage...")
    print(f"    Bucket: {settings.storage_bucket}")
    print("    Storage: " + ("CONNECTED" if get_storage_service().test_connection() else "FAILED"))

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
