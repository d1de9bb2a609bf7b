"""Delegation SQL query constants.

Queries are parameterized by schema. Conditional updates carry the expected
current state in their WHERE clause so concurrent writers cannot both win.
"""

REQUEST_COLUMNS = """
    id, owner_id, beneficiary_id, scope, target_id, permission_type, reason,
    requested_at, status, resolved_by, resolved_at, resolution_comment, expiration_date
"""

GRANT_COLUMNS = """
    id, owner_id, beneficiary_id, scope, target_id, permission_type, granted_at,
    expiration_date, active, origin_request_id, revoked_at, revoked_by, revocation_reason
"""

# Delegation requests
REQUEST_INSERT = """
    INSERT INTO {schema}.delegation_requests (
        owner_id, beneficiary_id, scope, target_id, permission_type, reason,
        requested_at, status, expiration_date
    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
    RETURNING """ + REQUEST_COLUMNS

REQUEST_GET_BY_ID = """
    SELECT """ + REQUEST_COLUMNS + """
    FROM {schema}.delegation_requests
    WHERE id = $1
"""

REQUEST_FIND_PENDING_DUPLICATE = """
    SELECT """ + REQUEST_COLUMNS + """
    FROM {schema}.delegation_requests
    WHERE owner_id = $1
      AND beneficiary_id = $2
      AND scope = $3
      AND target_id IS NOT DISTINCT FROM $4
      AND permission_type = $5
      AND status = 'PENDING'
    LIMIT 1
"""

REQUEST_FIND_PENDING_BY_OWNERS = """
    SELECT """ + REQUEST_COLUMNS + """
    FROM {schema}.delegation_requests
    WHERE owner_id = ANY($1::int[]) AND status = 'PENDING'
    ORDER BY requested_at, id
"""

REQUEST_FIND_BY_OWNER = """
    SELECT """ + REQUEST_COLUMNS + """
    FROM {schema}.delegation_requests
    WHERE owner_id = $1 AND ($2::varchar IS NULL OR status = $2)
    ORDER BY requested_at DESC, id DESC
    LIMIT $3
"""

REQUEST_FIND_BY_BENEFICIARY = """
    SELECT """ + REQUEST_COLUMNS + """
    FROM {schema}.delegation_requests
    WHERE beneficiary_id = $1 AND ($2::varchar IS NULL OR status = $2)
    ORDER BY requested_at DESC, id DESC
    LIMIT $3
"""

REQUEST_FIND_EXPIRED_PENDING = """
    SELECT """ + REQUEST_COLUMNS + """
    FROM {schema}.delegation_requests
    WHERE status = 'PENDING' AND expiration_date IS NOT NULL AND expiration_date < $1
    ORDER BY id
"""

REQUEST_RESOLVE = """
    UPDATE {schema}.delegation_requests SET
        status = $2,
        resolved_by = $3,
        resolved_at = $4,
        resolution_comment = $5
    WHERE id = $1 AND status = 'PENDING'
    RETURNING """ + REQUEST_COLUMNS

REQUEST_MARK_REVOKED = """
    UPDATE {schema}.delegation_requests SET
        status = 'REVOKED'
    WHERE id = $1 AND status = 'APPROVED'
    RETURNING """ + REQUEST_COLUMNS

REQUEST_COUNT_BY_STATUS = """
    SELECT status, COUNT(*) AS total
    FROM {schema}.delegation_requests
    WHERE ($1::int[] IS NULL OR owner_id = ANY($1::int[]))
      AND ($2::int IS NULL OR beneficiary_id = $2)
    GROUP BY status
"""

# Permission grants
GRANT_INSERT = """
    INSERT INTO {schema}.permission_grants (
        owner_id, beneficiary_id, scope, target_id, permission_type,
        granted_at, expiration_date, active, origin_request_id
    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
    RETURNING """ + GRANT_COLUMNS

GRANT_GET_BY_ID = """
    SELECT """ + GRANT_COLUMNS + """
    FROM {schema}.permission_grants
    WHERE id = $1
"""

GRANT_FIND_ACTIVE = """
    SELECT """ + GRANT_COLUMNS + """
    FROM {schema}.permission_grants
    WHERE beneficiary_id = $1
      AND scope = $2
      AND target_id IS NOT DISTINCT FROM $3
      AND permission_type = $4
      AND active
    LIMIT 1
"""

GRANT_FIND_ACTIVE_COVERING = """
    SELECT """ + GRANT_COLUMNS + """
    FROM {schema}.permission_grants
    WHERE beneficiary_id = $1
      AND scope = $2
      AND target_id IS NOT DISTINCT FROM $3
      AND permission_type = ANY($4::varchar[])
      AND active
    ORDER BY id
"""

GRANT_FIND_BY_BENEFICIARY = """
    SELECT """ + GRANT_COLUMNS + """
    FROM {schema}.permission_grants
    WHERE beneficiary_id = $1 AND (NOT $2 OR active)
    ORDER BY granted_at DESC, id DESC
"""

GRANT_FIND_BY_OWNER = """
    SELECT """ + GRANT_COLUMNS + """
    FROM {schema}.permission_grants
    WHERE owner_id = $1 AND (NOT $2 OR active)
    ORDER BY granted_at DESC, id DESC
"""

GRANT_FIND_EXPIRED_ACTIVE = """
    SELECT """ + GRANT_COLUMNS + """
    FROM {schema}.permission_grants
    WHERE active AND expiration_date IS NOT NULL AND expiration_date < $1
    ORDER BY id
"""

GRANT_FIND_EXPIRING_BETWEEN = """
    SELECT """ + GRANT_COLUMNS + """
    FROM {schema}.permission_grants
    WHERE active
      AND expiration_date BETWEEN $1 AND $2
      AND ($3::int IS NULL OR owner_id = $3)
      AND ($4::int IS NULL OR beneficiary_id = $4)
    ORDER BY expiration_date, id
"""

GRANT_DEACTIVATE = """
    UPDATE {schema}.permission_grants SET
        active = FALSE,
        revoked_by = $2,
        revocation_reason = $3,
        revoked_at = $4
    WHERE id = $1 AND active
    RETURNING """ + GRANT_COLUMNS

GRANT_COUNT_ACTIVE = """
    SELECT COUNT(*)
    FROM {schema}.permission_grants
    WHERE active
      AND ($1::int[] IS NULL OR owner_id = ANY($1::int[]))
      AND ($2::int IS NULL OR beneficiary_id = $2)
"""
