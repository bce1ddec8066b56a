"""
Módulo de IA

Preguntas de negocio en lenguaje natural, pronóstico de ventas y
sugerencias de descripción para líneas de factura sobre un modelo alojado.
"""
