"""SQL schema and derived view definitions for region stores.

This module isolates DDL text from the store's transaction flow.
The views express the linear sweep model of
``transforms.sweep_estimate`` over stored Region and Nation rows.
"""

from __future__ import annotations

from core.constants import (
    NATION_TABLE_NAME,
    RAW_ESTIMATES_VIEW_NAME,
    REGION_TABLE_NAME,
    UPDATE_DATA_VIEW_NAME,
    UPDATE_TIMES_VIEW_NAME,
    VARIANCE_DECIMALS,
)

CREATE_REGION_TABLE = f"""
CREATE TABLE IF NOT EXISTS {REGION_TABLE_NAME} (
    ID INTEGER PRIMARY KEY,
    Name TEXT NOT NULL UNIQUE CHECK (length(Name) > 0),
    hasGovernor INTEGER NOT NULL DEFAULT 0,
    hasPassword INTEGER NOT NULL DEFAULT 0,
    isFrontier INTEGER NOT NULL DEFAULT 0,
    LastMajorUpdate INTEGER NOT NULL,
    LastMinorUpdate INTEGER NOT NULL,
    NumNations INTEGER NOT NULL DEFAULT 0,
    Delegate TEXT,
    DelegateAuth TEXT,
    DelegateVotes INTEGER NOT NULL DEFAULT 0,
    Founder TEXT,
    Embassies TEXT,
    Factbook TEXT
)
"""

CREATE_NATION_TABLE = f"""
CREATE TABLE IF NOT EXISTS {NATION_TABLE_NAME} (
    ID INTEGER PRIMARY KEY,
    Name TEXT,
    Region INTEGER NOT NULL REFERENCES {REGION_TABLE_NAME}(ID)
)
"""

CREATE_NATION_REGION_INDEX = f"""
CREATE INDEX IF NOT EXISTS idx_nation_region ON {NATION_TABLE_NAME} (Region)
"""

INSERT_REGION = f"""
INSERT INTO {REGION_TABLE_NAME} (
    ID, Name, hasGovernor, hasPassword, isFrontier, LastMajorUpdate, LastMinorUpdate,
    NumNations, Delegate, DelegateAuth, DelegateVotes, Founder, Embassies, Factbook
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

INSERT_NATION = f"INSERT INTO {NATION_TABLE_NAME} (ID, Name, Region) VALUES (?, ?, ?)"

# Dropped in dependency order: each view reads the one created before it.
DROP_VIEWS = (
    f"DROP VIEW IF EXISTS {UPDATE_TIMES_VIEW_NAME}",
    f"DROP VIEW IF EXISTS {RAW_ESTIMATES_VIEW_NAME}",
    f"DROP VIEW IF EXISTS {UPDATE_DATA_VIEW_NAME}",
)

CREATE_UPDATE_DATA_VIEW = f"""
CREATE VIEW {UPDATE_DATA_VIEW_NAME} AS
SELECT
    *,
    CAST(MajorLength AS REAL) / NULLIF(NumNations, 0) AS TPN_Major,
    CAST(MinorLength AS REAL) / NULLIF(NumNations, 0) AS TPN_Minor
FROM (
    SELECT
        (SELECT COUNT(*) FROM {NATION_TABLE_NAME}) AS NumNations,
        (SELECT MIN(LastMajorUpdate) FROM {REGION_TABLE_NAME}) AS MajorStart,
        (SELECT MAX(LastMajorUpdate) - MIN(LastMajorUpdate) FROM {REGION_TABLE_NAME})
            AS MajorLength,
        (SELECT MIN(LastMinorUpdate) FROM {REGION_TABLE_NAME} WHERE LastMinorUpdate > 0)
            AS MinorStart,
        (SELECT MAX(LastMinorUpdate) - MIN(LastMinorUpdate)
            FROM {REGION_TABLE_NAME} WHERE LastMinorUpdate > 0) AS MinorLength
)
"""

CREATE_RAW_ESTIMATES_VIEW = f"""
CREATE VIEW {RAW_ESTIMATES_VIEW_NAME} AS
SELECT
    r.ID,
    r.Name,
    r.hasGovernor,
    r.hasPassword,
    r.isFrontier,
    n.NationID,
    n.NationID * u.TPN_Major AS MajorEST,
    r.LastMajorUpdate - u.MajorStart AS MajorACT,
    (r.LastMajorUpdate - u.MajorStart) - n.NationID * u.TPN_Major AS MajorVAR,
    CASE WHEN r.LastMinorUpdate > 0 THEN n.NationID * u.TPN_Minor END AS MinorEST,
    CASE WHEN r.LastMinorUpdate > 0 THEN r.LastMinorUpdate - u.MinorStart END AS MinorACT,
    CASE WHEN r.LastMinorUpdate > 0
        THEN (r.LastMinorUpdate - u.MinorStart) - n.NationID * u.TPN_Minor
    END AS MinorVAR,
    r.NumNations,
    r.Delegate,
    r.DelegateAuth,
    r.DelegateVotes,
    r.Founder,
    r.Embassies,
    r.Factbook
FROM (
    SELECT Region AS RegionID, MIN(ID) AS NationID
    FROM {NATION_TABLE_NAME}
    GROUP BY Region
) AS n
INNER JOIN {REGION_TABLE_NAME} AS r ON r.ID = n.RegionID
CROSS JOIN {UPDATE_DATA_VIEW_NAME} AS u
ORDER BY n.NationID
"""

CREATE_UPDATE_TIMES_VIEW = f"""
CREATE VIEW {UPDATE_TIMES_VIEW_NAME} AS
SELECT
    ID,
    Name,
    hasGovernor,
    hasPassword,
    isFrontier,
    strftime('%H:%M:%f', MajorEST, 'unixepoch') AS MajorEST,
    strftime('%H:%M:%f', MajorACT, 'unixepoch') AS MajorACT,
    ROUND(MajorVAR, {VARIANCE_DECIMALS}) AS MajorVar,
    strftime('%H:%M:%f', MinorEST, 'unixepoch') AS MinorEST,
    strftime('%H:%M:%f', MinorACT, 'unixepoch') AS MinorACT,
    ROUND(MinorVAR, {VARIANCE_DECIMALS}) AS MinorVar,
    NumNations,
    Delegate,
    DelegateAuth,
    DelegateVotes,
    Founder,
    Embassies,
    Factbook
FROM {RAW_ESTIMATES_VIEW_NAME}
ORDER BY NationID
"""

CREATE_VIEWS = (
    CREATE_UPDATE_DATA_VIEW,
    CREATE_RAW_ESTIMATES_VIEW,
    CREATE_UPDATE_TIMES_VIEW,
)
