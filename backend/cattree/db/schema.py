"""Database schema DDL. All tables use CREATE IF NOT EXISTS for idempotency."""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS events (
    sequence_num INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id TEXT UNIQUE NOT NULL,
    owner TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    device_id TEXT NOT NULL DEFAULT 'local',
    event_type TEXT NOT NULL,
    payload TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_owner ON events(owner);
CREATE INDEX IF NOT EXISTS idx_events_event_type ON events(event_type);

CREATE TABLE IF NOT EXISTS categories (
    node_id TEXT PRIMARY KEY,
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    parent_id TEXT,
    position INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (owner, name),
    FOREIGN KEY (parent_id) REFERENCES categories(node_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_categories_owner ON categories(owner);
CREATE INDEX IF NOT EXISTS idx_categories_parent_id ON categories(parent_id);
"""
