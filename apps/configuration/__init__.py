"""
Live pricing configuration stores.

This app holds the three mutable configuration data sets that the pricing
backup system snapshots and restores:
- PriceFix: service pricing master documents
- ProductCatalog: versioned product catalogs (families of products)
- ServiceConfig: per-service pricing configuration documents
"""
