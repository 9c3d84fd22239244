"""Clients for RDS, S3 and the catalog database."""
