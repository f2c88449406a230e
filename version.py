"""
version.py - Warehouse
======================
Single source of truth for the version number.
"""

APP_NAME = "warehouse"
VERSION  = "1.0.0"
BUILD    = "2026.10.18"
