"""Servicios del Core: ensamblado del tablero y orquestación del render."""
