# vipgate/core/database/schema.py
# Table layout shared by the application startup and scripts/init_db.py

TABLE_DEFINITIONS = {
    "users": """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'user'
    );
    """,
    "files": """
    CREATE TABLE IF NOT EXISTS files (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        filename TEXT NOT NULL,
        original_filename TEXT NOT NULL,
        file_size INTEGER NOT NULL,
        mime_type TEXT NOT NULL,
        uploaded_at TEXT NOT NULL,
        uploaded_by INTEGER,
        FOREIGN KEY (uploaded_by) REFERENCES users (id) ON DELETE SET NULL
    );
    """,
    "ip_whitelist": """
    CREATE TABLE IF NOT EXISTS ip_whitelist (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        ip_address TEXT UNIQUE NOT NULL,
        description TEXT NOT NULL,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TEXT NOT NULL,
        expires_at TEXT,
        created_by INTEGER,
        FOREIGN KEY (created_by) REFERENCES users (id) ON DELETE SET NULL
    );
    """,
    # file_id carries no foreign key: log rows outlive the files they mention
    "access_logs": """
    CREATE TABLE IF NOT EXISTS access_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        ip_address TEXT NOT NULL,
        file_id INTEGER,
        timestamp TEXT NOT NULL,
        event_type TEXT NOT NULL,
        status TEXT NOT NULL,
        details TEXT
    );
    """,
    "revoked_tokens": """
    CREATE TABLE IF NOT EXISTS revoked_tokens (
        jti TEXT PRIMARY KEY,
        revoked_at TEXT NOT NULL,
        expires_at TEXT
    );
    """,
}

INDEX_DEFINITIONS = [
    "CREATE INDEX IF NOT EXISTS idx_files_uploaded_at ON files(uploaded_at);",
    "CREATE INDEX IF NOT EXISTS idx_ip_whitelist_created_at ON ip_whitelist(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_access_logs_timestamp ON access_logs(timestamp);",
    "CREATE INDEX IF NOT EXISTS idx_access_logs_status ON access_logs(status);",
    "CREATE INDEX IF NOT EXISTS idx_access_logs_event_type ON access_logs(event_type);",
]


def build_schema_script() -> str:
    return "\n".join(list(TABLE_DEFINITIONS.values()) + INDEX_DEFINITIONS)
