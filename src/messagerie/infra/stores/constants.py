"""Shared constants for the store adapters.

Field names of both message document shapes, the profile document
layout and the SQL templates live here so magic strings stay in one
place.
"""

# Message documents: current shape
FIELD_ID = "_id"
FIELD_SENDER = "sender"
FIELD_RECIPIENT = "recipient"
FIELD_CONTENT = "content"

# Message documents: legacy shape
FIELD_FROM = "from"
FIELD_TO = "to"

# Shared message fields
FIELD_MESSAGE_TYPE = "message_type"
FIELD_TIMESTAMP = "timestamp"
FIELD_READ = "read"
FIELD_READ_AT = "read_at"

SHAPE_CURRENT = "current"
SHAPE_LEGACY = "legacy"

# Profile documents (primary store)
FIELD_OWNER = "username"
FIELD_CONTACTS = "contacts"
FIELD_USERNAME = "username"
FIELD_FIRST_NAME = "first_name"
FIELD_PHOTO = "photo"

# Relational profile table
TABLE_ACCOUNTS = "compte_compte"
COL_USERNAME = "username"
COL_FIRST_NAME = "first_name"
COL_PHOTO = "photo"
COL_IS_ONLINE = "is_online"

PARAM_USERNAME = "username"
PARAM_IS_ONLINE = "is_online"

BIO_COLUMNS = ("age", "date_of_birth")


def sql_select_profile(bio_column: str) -> str:
    """Profile lookup for one username; *bio_column* must be a known column."""
    if bio_column not in BIO_COLUMNS:
        raise ValueError(f"Unknown biographical column: {bio_column!r}")
    return f"""
        SELECT {COL_FIRST_NAME}, {bio_column}, {COL_PHOTO}
        FROM {TABLE_ACCOUNTS}
        WHERE {COL_USERNAME} = :{PARAM_USERNAME}
        LIMIT 1
    """


SQL_UPSERT_CONNECTION = f"""
    INSERT INTO {TABLE_ACCOUNTS}
        ({COL_USERNAME}, {COL_IS_ONLINE}, connected_at, last_seen)
    VALUES (:{PARAM_USERNAME}, :{PARAM_IS_ONLINE}, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
    ON CONFLICT ({COL_USERNAME}) DO UPDATE
    SET {COL_IS_ONLINE} = :{PARAM_IS_ONLINE}, last_seen = CURRENT_TIMESTAMP
"""
SQL_SELECT_ONLINE = f"""
    SELECT {COL_USERNAME}
    FROM {TABLE_ACCOUNTS}
    WHERE {COL_IS_ONLINE} = true
    ORDER BY {COL_USERNAME}
"""
SQL_SELECT_IS_ONLINE = f"""
    SELECT {COL_IS_ONLINE}
    FROM {TABLE_ACCOUNTS}
    WHERE {COL_USERNAME} = :{PARAM_USERNAME}
"""
