from .inventory import Product, Inflow, Outflow

__all__ = [
    'Product', 'Inflow', 'Outflow',
]
