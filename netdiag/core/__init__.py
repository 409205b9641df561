"""Diagnostics: configuration discovery, ping and DNS."""
