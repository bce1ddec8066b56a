"""
Reports Module

Reportes de solo lectura sobre las tablas de facturas, pagos, gastos e inventario.
Este módulo NO crea nuevas tablas.

- Antigüedad de cuentas por cobrar (aging)
- Estado de resultados (ingresos por pagos vs gastos)
- Gastos por categoría
- Análisis de ventas diario y productos más vendidos
- Antigüedad del inventario y rentabilidad por producto, categoría y proveedor
- Exportación CSV de facturas, clientes, inventario y gastos

Solo owner/admin tienen acceso.

Architecture Pattern: Service Layer
- routers/ -> Define FastAPI endpoints con validaciones
- services/ -> Consultas y agregaciones
- schemas/ -> Modelos Pydantic de respuesta
- utils/ -> Exportación CSV y rangos de fechas
"""

from .routers import sales_router, financial_router, exports_router, inventory_router

__all__ = ["sales_router", "financial_router", "exports_router", "inventory_router"]
