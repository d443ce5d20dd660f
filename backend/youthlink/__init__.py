"""
Marks `youthlink` as a Python package.

Routers live in youthlink/api, business rules in youthlink/services,
auth helpers and domain errors in youthlink/core.
"""

from __future__ import annotations
