"""
Store handle, schema definitions and schema management.
"""
