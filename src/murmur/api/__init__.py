"""HTTP and websocket API for the Murmur application."""
