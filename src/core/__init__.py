"""Core domain package for the FTPS health check.

Core contains the retry runner, the connectivity check, and the shared models
without any FTP or SMTP specific code, keeping the check logic portable.
"""
