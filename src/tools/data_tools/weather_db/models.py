"""Database schema for the local key-value storage."""

# SQLite schema definitions
SCHEMA_SQL = """
-- Key-value items, the equivalent of browser localStorage
CREATE TABLE IF NOT EXISTS storage_items (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""
