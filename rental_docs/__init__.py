"""
Rental Mario Hans — order and contract document generation

Packages:
    core/          Settings, business constants, errors, paths, sqlite store
    forms/         Totals, normalization, layout assembly and PDF rendering
    integrations/  Object-storage upload and SMTP delivery
    api/           Flask routes for the generation endpoints
"""

__version__ = "1.4.0"
