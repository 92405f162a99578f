"""Delivery interfaces of the service."""
