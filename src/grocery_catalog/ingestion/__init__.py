"""
Ingestion — load the product catalog, embed each product and store it.

This module is responsible for the batch job that turns a JSON array of
products into MongoDB documents carrying an ``embedding`` vector, ready
for a vector index provisioned on the collection out of band.
"""
