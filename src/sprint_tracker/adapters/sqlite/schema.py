"""Database schema definitions for the SQLite backend.

Column names are the export-format field names, so rows validate directly
into the pydantic models. Check constraints repeat the validation rules, so a
write that bypasses the services still cannot break the core invariants.
"""

from __future__ import annotations

# Latest schema version; each migration bumps it by one
SCHEMA_VERSION = 2

SPRINT_TABLE = "sprint"
GOAL_TABLE = "goal"
CRITERION_TABLE = "success_criterion"

CREATE_SPRINT_TABLE = """
CREATE TABLE IF NOT EXISTS sprint (
    id TEXT PRIMARY KEY CHECK(length(id) = 36),
    volgnummer INTEGER NOT NULL UNIQUE CHECK(volgnummer > 0),
    startdatum TEXT NOT NULL CHECK(length(startdatum) = 10),
    einddatum TEXT NOT NULL CHECK(length(einddatum) = 10),
    CHECK(einddatum > startdatum)
)
"""

CREATE_GOAL_TABLE = """
CREATE TABLE IF NOT EXISTS goal (
    id TEXT PRIMARY KEY CHECK(length(id) = 36),
    sprint_id TEXT NOT NULL REFERENCES sprint(id) ON DELETE CASCADE,
    titel TEXT NOT NULL CHECK(length(titel) > 0 AND length(titel) <= 200),
    beschrijving TEXT NOT NULL CHECK(length(beschrijving) <= 2000),
    eigenaar TEXT NOT NULL CHECK(length(eigenaar) > 0 AND length(eigenaar) <= 50),
    geschatte_uren REAL NOT NULL CHECK(
        geschatte_uren >= 0
        AND geschatte_uren * 4 = CAST(geschatte_uren * 4 AS INTEGER)
    ),
    werkelijke_uren REAL CHECK(
        werkelijke_uren IS NULL
        OR (werkelijke_uren >= 0
            AND werkelijke_uren * 4 = CAST(werkelijke_uren * 4 AS INTEGER))
    ),
    behaald INTEGER CHECK(behaald IS NULL OR behaald IN (0, 1)),
    toelichting TEXT CHECK(toelichting IS NULL OR length(toelichting) <= 2000),
    geleerde_lessen TEXT CHECK(geleerde_lessen IS NULL OR length(geleerde_lessen) <= 2000),
    aangemaakt_op TEXT NOT NULL CHECK(length(aangemaakt_op) >= 10),
    gewijzigd_op TEXT NOT NULL CHECK(length(gewijzigd_op) >= 10)
)
"""

CREATE_CRITERION_TABLE = """
CREATE TABLE IF NOT EXISTS success_criterion (
    id TEXT PRIMARY KEY CHECK(length(id) = 36),
    goal_id TEXT NOT NULL REFERENCES goal(id) ON DELETE CASCADE,
    beschrijving TEXT NOT NULL CHECK(length(beschrijving) > 0 AND length(beschrijving) <= 500),
    voltooid INTEGER NOT NULL DEFAULT 0 CHECK(voltooid IN (0, 1))
)
"""

# Indexes created with the initial schema
INITIAL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_goal_sprint_id ON goal(sprint_id)",
    "CREATE INDEX IF NOT EXISTS idx_success_criterion_goal_id ON success_criterion(goal_id)",
    "CREATE INDEX IF NOT EXISTS idx_sprint_volgnummer ON sprint(volgnummer)",
]

# Indexes added in schema version 2
QUERY_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_goal_eigenaar ON goal(eigenaar)",
    "CREATE INDEX IF NOT EXISTS idx_goal_aangemaakt_op ON goal(aangemaakt_op)",
    "CREATE INDEX IF NOT EXISTS idx_sprint_dates ON sprint(startdatum, einddatum)",
]

ALL_TABLES = [CREATE_SPRINT_TABLE, CREATE_GOAL_TABLE, CREATE_CRITERION_TABLE]
ALL_INDEXES = INITIAL_INDEXES + QUERY_INDEXES
