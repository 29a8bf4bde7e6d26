"""Tenant and role authorization context for the condominium platform."""
