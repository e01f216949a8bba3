"""
Document generation: data normalization, totals, layout assembly and PDF
rendering for quotes, order contracts, processing confirmations and
standalone customer contracts.
"""
