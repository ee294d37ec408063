"""Adapters for the FTPS health check.

Adapters wrap ftplib and smtplib behind the core ports so the check logic
never touches network libraries directly.
"""
