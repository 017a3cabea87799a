"""
Board subsystem.

Components:
- models.py: data structures (Task, Board, Project, User) + id normalization
- task_store.py: in-memory task list of the open project
- pending.py: task ids whose board update is in flight
- refetch.py: debounced full reload of the project
- reconciler.py: drag-and-drop board reassignment (optimistic, with rollback)
- view.py: project board page (load/refresh, CRUD, permissions)
- overview.py: project list with counts
"""
