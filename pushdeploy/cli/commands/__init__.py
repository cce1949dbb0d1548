"""CLI command modules.

Command Groups:
- db: Database management
- deployments: Inspect, run and cancel deployments
- projects: Preview, inspect and tear down project infrastructure
- dns: Cloudflare token checks
- users: Accounts and stored credentials
"""

from .cluster import nodes
from .db import db_app
from .dns import dns_app
from .deployments import deployments_app
from .projects import projects_app
from .users import users_app

__all__ = [
    "db_app",
    "deployments_app",
    "dns_app",
    "projects_app",
    "users_app",
    "nodes",
]
