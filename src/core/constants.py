"""Core constants used across sweepwatch modules.

This module centralizes file naming, endpoint, and schema constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

PROJECT_NAME = "sweepwatch"
PROJECT_VERSION = "0.1.0"
DEFAULT_DATA_ROOT = Path(".sweepwatch")
DEFAULT_API_URL = "https://www.nationstates.net/cgi-bin/api.cgi"
DEFAULT_DUMP_URL = "https://www.nationstates.net/pages/regions.xml.gz"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DUMP_DOWNLOAD_CHUNK_SIZE = 1 << 16
DUMP_CATEGORY = "regions"
STORE_CATEGORY = "data"
DUMP_EXTENSION = ".xml.gz"
STORE_EXTENSION = ".db"
DUMP_DATE_FORMAT = "%m.%d.%Y"
GOVERNORLESS_TAG = "governorless"
PASSWORD_TAG = "password"
FRONTIER_TAG = "frontier"
REGION_TAGS = (GOVERNORLESS_TAG, PASSWORD_TAG, FRONTIER_TAG)
REGION_TABLE_NAME = "Region"
NATION_TABLE_NAME = "Nation"
UPDATE_DATA_VIEW_NAME = "Update_Data"
RAW_ESTIMATES_VIEW_NAME = "Raw_Estimates"
UPDATE_TIMES_VIEW_NAME = "Update_Times"
VARIANCE_DECIMALS = 3
