"""Shared configuration, logging and output helpers."""
