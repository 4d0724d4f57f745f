"""Shared models and services for the donation checkout backend."""
