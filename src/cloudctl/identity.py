"""Identity resolution for new clusters.

A cluster carries three identity fields: the owner, the tenant it is
billed to, and the user who created it. All three currently come from the
``--owner`` value the caller passes; deriving tenant and creator from the
authenticated caller only needs a change here.
"""

from __future__ import annotations

from cloudctl.models import Identity


def resolve_identity(owner: str) -> Identity:
    """Resolve the identity fields of a cluster from its owner."""
    return Identity(owner=owner, tenant=owner, created_by=owner)
