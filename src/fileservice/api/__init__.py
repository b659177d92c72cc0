"""HTTP API for the File Service."""
