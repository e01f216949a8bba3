"""Shared configuration, business constants, errors, paths and persistence."""
