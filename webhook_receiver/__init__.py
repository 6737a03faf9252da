"""Webhook receiver: register shared secrets, admit HMAC-signed deliveries."""

__version__ = "0.1.0"
