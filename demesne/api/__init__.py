"""HTTP adapter and process runtime."""
