"""Retrofit backend: handlers, services and data models."""
