"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras (Pydantic v2 y el árbol de datos).
- El dominio no conoce HTTP, CLI, ni HTML: solo conceptos del problema.
"""
