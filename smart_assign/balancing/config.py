"""
Deployment-level policy constants for the load-balancing engine.

Values come from the environment (or .env) so each deployment can tune them:
- LB_CAPACITY_CEILING: assumed maximum of active requests per officer
- LB_ACTIVE_STATUSES: comma-separated request statuses counted as workload
- LB_PENDING_STATUS: status of requests waiting for a procurement officer
- LB_OFFICER_ROLE: role name that makes a user an assignable officer
- LB_TIMEZONE: timezone used to match officers' peak performance hours
"""

import os
from pathlib import Path
from typing import Tuple
from dotenv import load_dotenv

project_root = Path(__file__).parent.parent.parent
load_dotenv(project_root / ".env")


def _parse_statuses(raw: str) -> Tuple[str, ...]:
    return tuple(s.strip().upper() for s in raw.split(",") if s.strip())


CAPACITY_CEILING: int = int(os.getenv("LB_CAPACITY_CEILING", "20"))
ACTIVE_STATUSES: Tuple[str, ...] = _parse_statuses(
    os.getenv("LB_ACTIVE_STATUSES", "PROCUREMENT_REVIEW,SENT_TO_VENDOR")
)
PENDING_STATUS: str = os.getenv("LB_PENDING_STATUS", "PROCUREMENT_REVIEW").strip().upper()
OFFICER_ROLE: str = os.getenv("LB_OFFICER_ROLE", "PROCUREMENT")
TIMEZONE: str = os.getenv("LB_TIMEZONE", "UTC")

# Status written to the history trail when a request is auto-assigned
ASSIGNED_STATUS = "PROCUREMENT_REVIEW"

# How many ranked candidates are logged for each AI_SMART decision
TOP_CANDIDATES_LOGGED = 3
