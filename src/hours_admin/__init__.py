"""Hours Admin package.

This package is organized by feature modules (users, time_entries, ...)
with a thin Flask controller layer and service/repository layers on top of
SQLAlchemy.
"""
