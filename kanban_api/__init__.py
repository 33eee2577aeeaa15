"""Persistence and domain rules for a Kanban-style work tracker."""
