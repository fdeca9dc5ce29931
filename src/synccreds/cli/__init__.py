"""Command line helpers for synccreds."""
