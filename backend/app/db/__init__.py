"""
Database module for OpsFinder

Contains seed data and database utilities.
"""
from app.db.seed_data import seed_all, clear_all, ensure_admin_user

__all__ = ["seed_all", "clear_all", "ensure_admin_user"]
