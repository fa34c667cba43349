"""Core: dominio, configuración y servicios (sin HTTP ni HTML)."""
