"""Taskflow - task analytics and views for a personal task manager."""
