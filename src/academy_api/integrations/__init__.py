"""Clients for third-party services: payments, SMS, email and identity tokens."""
