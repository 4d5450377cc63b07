"""Content tree access."""
