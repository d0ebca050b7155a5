"""
dmesh - Data Mesh access toolkit

Discover, inspect and query data products registered in a metadata catalog:
- Short-lived role credentials with automatic refresh
- Catalog resolution of domain.product names to physical locations
- Ad hoc SQL over object storage through an embedded DuckDB session
- Audit trail of every access attempt
"""

__version__ = "0.1.0"
