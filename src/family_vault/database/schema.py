"""DDL for the delegation schema.

The partial unique index on active grants enforces the one-active-grant
per (beneficiary, scope, target, permission type) invariant at the storage
layer. FULL_SPACE grants have no target, so the index coalesces NULL to 0.
"""

import logging

from .connection import DatabaseManager

logger = logging.getLogger(__name__)


SCHEMA_DDL = """
CREATE SCHEMA IF NOT EXISTS {schema};

CREATE TABLE IF NOT EXISTS {schema}.members (
    id              INTEGER PRIMARY KEY,
    family_id       INTEGER NOT NULL,
    is_admin        BOOLEAN NOT NULL DEFAULT FALSE,
    is_responsible  BOOLEAN NOT NULL DEFAULT FALSE
);

CREATE TABLE IF NOT EXISTS {schema}.delegation_requests (
    id                  SERIAL PRIMARY KEY,
    owner_id            INTEGER NOT NULL,
    beneficiary_id      INTEGER NOT NULL,
    scope               VARCHAR(16) NOT NULL,
    target_id           INTEGER,
    permission_type     VARCHAR(8) NOT NULL,
    reason              VARCHAR(500) NOT NULL,
    requested_at        TIMESTAMPTZ NOT NULL,
    status              VARCHAR(16) NOT NULL DEFAULT 'PENDING',
    resolved_by         INTEGER,
    resolved_at         TIMESTAMPTZ,
    resolution_comment  VARCHAR(500),
    expiration_date     TIMESTAMPTZ,
    CONSTRAINT delegation_requests_distinct_members CHECK (owner_id <> beneficiary_id),
    CONSTRAINT delegation_requests_target_matches_scope CHECK (
        (scope = 'FULL_SPACE' AND target_id IS NULL) OR (scope <> 'FULL_SPACE' AND target_id IS NOT NULL)
    )
);

CREATE INDEX IF NOT EXISTS delegation_requests_owner_status_idx
    ON {schema}.delegation_requests (owner_id, status);
CREATE INDEX IF NOT EXISTS delegation_requests_beneficiary_status_idx
    ON {schema}.delegation_requests (beneficiary_id, status);

CREATE TABLE IF NOT EXISTS {schema}.permission_grants (
    id                  SERIAL PRIMARY KEY,
    owner_id            INTEGER NOT NULL,
    beneficiary_id      INTEGER NOT NULL,
    scope               VARCHAR(16) NOT NULL,
    target_id           INTEGER,
    permission_type     VARCHAR(8) NOT NULL,
    granted_at          TIMESTAMPTZ NOT NULL,
    expiration_date     TIMESTAMPTZ,
    active              BOOLEAN NOT NULL DEFAULT TRUE,
    origin_request_id   INTEGER REFERENCES {schema}.delegation_requests (id),
    revoked_at          TIMESTAMPTZ,
    revoked_by          INTEGER,
    revocation_reason   VARCHAR(500)
);

CREATE UNIQUE INDEX IF NOT EXISTS permission_grants_one_active_idx
    ON {schema}.permission_grants (beneficiary_id, scope, COALESCE(target_id, 0), permission_type)
    WHERE active;
CREATE INDEX IF NOT EXISTS permission_grants_owner_idx
    ON {schema}.permission_grants (owner_id) WHERE active;

CREATE TABLE IF NOT EXISTS {schema}.audit_entries (
    id                      SERIAL PRIMARY KEY,
    action                  VARCHAR(32) NOT NULL,
    actor_id                INTEGER NOT NULL,
    subject_permission_id   INTEGER,
    subject_beneficiary_id  INTEGER,
    subject_request_id      INTEGER,
    description             TEXT NOT NULL,
    timestamp               TIMESTAMPTZ NOT NULL,
    severity                VARCHAR(16) NOT NULL
);

CREATE INDEX IF NOT EXISTS audit_entries_actor_idx ON {schema}.audit_entries (actor_id, timestamp DESC);
CREATE INDEX IF NOT EXISTS audit_entries_permission_idx ON {schema}.audit_entries (subject_permission_id);
"""


async def init_schema(db: DatabaseManager, schema: str) -> None:
    """Create the delegation tables and indexes if missing."""
    async with db.transaction() as connection:
        await connection.execute(SCHEMA_DDL.format(schema=schema))
    logger.info(f"Delegation schema '{schema}' initialized")
