from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Header

# Acting user, resolved to team memberships for team-scoped queries.
UserIdHeader = Annotated[Optional[str], Header(alias="x-user-id")]
