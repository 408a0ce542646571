"""Utility helpers for the wallet proxy."""
