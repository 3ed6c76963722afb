"""Fellowship Connect attendance service.

This package is organized by feature modules (auth, users, attendance, audit)
with a thin Flask controller layer over service/repository layers.
"""
