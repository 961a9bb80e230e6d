"""Murmur social backend: realtime presence, messaging and live rooms."""
