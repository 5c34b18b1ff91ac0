"""
Services Module
Business logic layer for the application.

Services contain the scan-to-reward pipeline (catalog lookup, scan
sessions, ledger crediting, ranking) and the read models built on top of
it. They are called by API endpoints and keep the controllers thin.
"""
