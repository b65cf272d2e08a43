"""Utility helpers for iScan."""
