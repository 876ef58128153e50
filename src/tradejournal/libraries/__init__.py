"""Reusable analytics libraries."""
