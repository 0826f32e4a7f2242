"""Pulse web application."""
