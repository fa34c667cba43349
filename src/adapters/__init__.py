"""Adaptadores de infraestructura: HTTP, paginación, plantillas y exportación."""
