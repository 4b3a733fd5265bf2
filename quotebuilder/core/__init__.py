"""Shared configuration, paths, persistence and task guards."""
