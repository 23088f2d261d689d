"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
For configurable values, see models.py.
"""

import re

# =============================================================================
# CLI Listing Defaults
# =============================================================================

FILES_LIST_DEFAULT = 20
"""Default rows for `atlas files`."""

FUNCTIONS_LIST_DEFAULT = 20
"""Default rows for `atlas functions`."""

SEARCH_DEFAULT_LIMIT = 20
"""Default results per list for `atlas search`."""

DEPS_LIST_DEFAULT = 50
"""Default rows for `atlas deps`."""

COMPLEXITY_LIST_DEFAULT = 10
"""Default rows for `atlas complexity`."""

FILES_SORT_FIELDS = ("path", "lines_count", "size_bytes", "name", "file_type")
"""Columns accepted by `atlas files --sort`."""

# =============================================================================
# Analysis
# =============================================================================

EXPORT_LOOKAHEAD_LINES = 20
"""Lines after a function declaration searched for a module export of it."""

PURPOSE_COMMENT_MIN_CHARS = 10
"""Shortest comment text accepted as a function purpose."""

# =============================================================================
# Reporting
# =============================================================================

DEBT_THRESHOLD_HIGH = 20
"""File complexity above which a file counts as high complexity."""

DEBT_THRESHOLD_VERY_HIGH = 50
"""File complexity above which a file counts as very high complexity."""

INSIGHTS_TOP_N = 3
"""Entries per insight list in repo-map.json."""

ARTIFACT_VERSION = "1.0.0"
"""Version stamped on generated artifacts."""

# =============================================================================
# Backups
# =============================================================================

BACKUP_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")
"""Characters allowed in a backup file name."""
