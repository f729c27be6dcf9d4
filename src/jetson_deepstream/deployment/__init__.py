"""Host-side project setup and client distribution export.

Prepares the directory `docker compose` runs from (mount points, `.env`,
sample configuration, device profile) and packages a trimmed copy for clients.
"""

from __future__ import annotations
